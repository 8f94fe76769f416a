"""
Generation: grounded answer synthesis with a chat model.

Public API
----------
- :class:`AnswerSynthesizer`: prompt assembly + generation call.
- :func:`build_answer_prompt`: the grounded-answer prompt.
- :func:`get_llm`: configured chat model factory.
- :class:`Answer`, :class:`Source`: response models.
"""

from manual_rag.generation.llm import get_llm
from manual_rag.generation.models import Answer, Source
from manual_rag.generation.prompts import build_answer_prompt
from manual_rag.generation.synthesizer import AnswerSynthesizer

__all__ = [
    "Answer",
    "AnswerSynthesizer",
    "Source",
    "build_answer_prompt",
    "get_llm",
]
