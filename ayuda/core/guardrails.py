from typing import Tuple

REPEAT_PROMPT = "No se detectó ningún texto. Inténtalo de nuevo."
UNCLEAR_PROMPT = "No te entendí bien. Describe de nuevo qué está pasando."


def check_utterance(text: str) -> Tuple[bool, str]:
    """
    Check a transcript before it is sent.
    Returns (is_valid, prompt_for_user). Invalid input is never fatal: the
    caller speaks the prompt and listens again.
    """
    if not text or not text.strip():
        return False, REPEAT_PROMPT
    if not any(ch.isalpha() for ch in text):
        return False, UNCLEAR_PROMPT
    return True, ""
