"""
Trailing @mention extraction.

A message may end with a run of `@word` annotations, for example:

    "What changed in the release notes? @ground"

The mentions act as per-turn directives (here: ground the answer with a web
search) and must not be sent to the model as part of the prompt. This module
splits such a message into the text to send and the list of mentions.

Only the trailing run counts. Collection walks backwards from the end of the
text, token by token, and stops at the first token that is not exactly `@`
followed by letters. That means:

    "Hello @world here"    -> nothing extracted, mention is mid-sentence
    "Some text @excited!"  -> nothing extracted, "!" spoils the last token
    "Hi @a @b\\n@c"         -> ("Hi", ["a", "b", "c"])
"""


def _is_mention(token: str) -> bool:
    return len(token) > 1 and token[0] == "@" and token[1:].isalpha()


def mentions_from_end(text: str) -> tuple[str, list[str]]:
    """Split trailing mentions off `text`.

    Returns the unconsumed prefix (trailing whitespace removed) and the
    mention names without their '@', in the order they appear in the text.
    Never raises; malformed trailing content simply ends the scan.
    """
    end = len(text)
    mentions: list[str] = []

    while True:
        prefix = text[:end].rstrip()
        end = len(prefix)
        if end == 0:
            break

        # The last token runs back over letters and '@' only
        start = end
        while start > 0 and (text[start - 1].isalpha() or text[start - 1] == "@"):
            start -= 1

        token = text[start:end]
        if not _is_mention(token):
            break

        mentions.append(token[1:])
        end = start

    # Collected right to left
    mentions.reverse()
    return text[:end], mentions
