"""Detection of answers in which the backend found nothing.

The backend has no structured "no answer" signal, so the UI falls back to a
phrase match on the finished text to decide whether to offer adding the
company's data. False positives are possible on arbitrary model output.
"""

NO_ANSWER_PHRASES = (
    "未找到答案",
    "找不到答案",
    "未找到",
    "找不到",
    "抱歉，未找到",
    "抱歉，找不到",
    "没有找到",
    "暂无答案",
    "无法找到",
    "no answer found",
    "could not find",
    "couldn't find",
)


def is_no_answer_found(content: str | None) -> bool:
    """Return True if the answer text says nothing relevant was found."""
    if not content or not content.strip():
        return False
    lowered = content.lower()
    return any(phrase in lowered for phrase in NO_ANSWER_PHRASES)
