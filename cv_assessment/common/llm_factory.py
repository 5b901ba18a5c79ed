"""
LLM factory.

All collaborators obtain their chat model here instead of instantiating
ChatOpenAI directly, so model choice and credentials stay in Config.

Usage:
    from cv_assessment.common.llm_factory import create_llm, create_cheap_llm

    llm = create_llm(step="alignment")
    response = await llm.ainvoke([SystemMessage(content="..."), HumanMessage(content="...")])
"""

import logging
from typing import Any, Optional

from langchain_openai import ChatOpenAI

from cv_assessment.common.config import Config

logger = logging.getLogger(__name__)


def create_llm(
    model: Optional[str] = None,
    temperature: Optional[float] = None,
    step: Optional[str] = None,
    **kwargs: Any,
) -> ChatOpenAI:
    """
    Create a ChatOpenAI instance for a collaborator call.

    Args:
        model: Model name (defaults to Config.DEFAULT_MODEL)
        temperature: Temperature (defaults to Config.ANALYTICAL_TEMPERATURE)
        step: Collaborator step name, used for logging only
        **kwargs: Additional ChatOpenAI parameters

    Returns:
        ChatOpenAI instance
    """
    effective_model = model or Config.DEFAULT_MODEL
    effective_temperature = temperature if temperature is not None else Config.ANALYTICAL_TEMPERATURE

    llm = ChatOpenAI(
        model=effective_model,
        temperature=effective_temperature,
        api_key=Config.OPENAI_API_KEY,
        base_url=Config.get_llm_base_url(),
        **kwargs,
    )

    logger.debug(f"Created OpenAI LLM: model={effective_model}, step={step}")
    return llm


def create_cheap_llm(step: Optional[str] = None, **kwargs: Any) -> ChatOpenAI:
    """Create a ChatOpenAI instance using the cheap model for simple tasks."""
    return create_llm(model=Config.CHEAP_MODEL, step=step, **kwargs)
