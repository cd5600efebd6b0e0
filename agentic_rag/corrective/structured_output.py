"""Helpers for chains that end in ``with_structured_output``."""

from typing import Any, Dict, Type, TypeVar

from langchain_core.runnables import Runnable
from pydantic import BaseModel, ValidationError

from agentic_rag.core.exceptions import StructuredOutputError
from agentic_rag.core.logging_config import get_logger

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def invoke_structured(
    chain: Runnable,
    inputs: Dict[str, Any],
    schema: Type[ModelT],
    component: str,
) -> ModelT:
    """
    Invoke a structured-output chain and check the result against its schema.

    Args:
        chain: Prompt piped into ``llm.with_structured_output(schema)``
        inputs: Prompt variables
        schema: Expected result model
        component: Name used in logs and errors

    Returns:
        The parsed result

    Raises:
        StructuredOutputError: If the call fails or the output does not fit the schema
    """
    try:
        result = chain.invoke(inputs)
    except Exception as e:
        logger.error(f"{component} call failed: {e}", exc_info=True)
        raise StructuredOutputError(component, f"LLM call failed: {e}") from e

    if isinstance(result, schema):
        return result

    # Some providers hand back a plain dict instead of the model
    if isinstance(result, dict):
        try:
            return schema.model_validate(result)
        except ValidationError as e:
            raise StructuredOutputError(component, f"output does not match schema: {e}") from e

    raise StructuredOutputError(
        component, f"expected {schema.__name__}, got {type(result).__name__}"
    )
