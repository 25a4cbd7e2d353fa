"""System prompts used by the shared provider helpers."""

SUMMARIZE_PROMPT = (
    "You are an assistant skilled in conversation. Summarize the user's "
    "conversation into a title of at most 10 words, in the language the user "
    "writes in. Reply with the title only, no punctuation or quotes."
)

SEARCH_SUMMARY_PROMPT = (
    "Decide whether the last user message needs a web search. If it does, "
    "reply with a concise search query only. If it does not, reply with "
    "exactly: not_needed"
)

SUGGESTIONS_PROMPT = (
    "Propose up to three short follow-up questions the user might ask next. "
    "Reply with one question per line and nothing else."
)

NO_SEARCH_MARKER = "not_needed"
