"""Unit tests for answer verifier module."""

from unittest.mock import patch

import pytest

from agentic_rag.core.exceptions import StructuredOutputError
from agentic_rag.corrective.answer_verifier import AnswerVerifier, GradeAnswer


@pytest.mark.unit
class TestAnswerVerifier:
    """Test cases for AnswerVerifier."""

    @patch("agentic_rag.corrective.answer_verifier.create_chat_model")
    def test_initialization(self, mock_create, structured_llm):
        mock_create.return_value = structured_llm()

        verifier = AnswerVerifier()

        assert verifier.chain is not None
        assert verifier.llm.schema is GradeAnswer

    def test_verify_good_answer(self, structured_llm):
        llm = structured_llm(GradeAnswer(addresses_question=True))
        verifier = AnswerVerifier(llm=llm)

        assert verifier.verify("What are LLM agents?", "Agents use an LLM as controller.") is True
        prompt = llm.prompts[0].to_string()
        assert "What are LLM agents?" in prompt
        assert "Agents use an LLM as controller." in prompt

    def test_verify_bad_answer(self, structured_llm):
        verifier = AnswerVerifier(llm=structured_llm(GradeAnswer(addresses_question=False)))

        assert verifier.verify("What are LLM agents?", "I like pizza.") is False

    def test_wrong_type_is_fatal(self, structured_llm):
        verifier = AnswerVerifier(llm=structured_llm("yes"))

        with pytest.raises(StructuredOutputError) as exc_info:
            verifier.grade("q", "a")

        assert exc_info.value.component == "AnswerVerifier"
