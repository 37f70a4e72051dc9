"""
Unit tests for BaseAgent

Tests the base agent framework including:
- Abstract class enforcement
- Timing and metadata tracking
- Error handling without retries
"""

import asyncio

import pytest

from dbchat.agents.base import BaseAgent
from dbchat.models.agent import AgentError, AgentInput, AgentOutput, GenerationError


class EchoAgent(BaseAgent):
    async def execute(self, input: AgentInput) -> AgentOutput:
        return AgentOutput(success=True, metadata=self._create_metadata())


@pytest.fixture
def sample_input():
    return AgentInput(query="Test query", context={"conversation_id": "conv_1"})


class TestBaseAgentInstantiation:
    """Test that BaseAgent enforces abstract class pattern."""

    def test_cannot_instantiate_base_agent_directly(self):
        with pytest.raises(TypeError, match="Can't instantiate abstract class"):
            BaseAgent(name="TestAgent")

    def test_subclass_must_implement_execute(self):
        class IncompleteAgent(BaseAgent):
            pass

        with pytest.raises(TypeError, match="Can't instantiate abstract class"):
            IncompleteAgent(name="IncompleteAgent")

    def test_valid_subclass_can_be_instantiated(self):
        agent = EchoAgent(name="EchoAgent")
        assert agent.name == "EchoAgent"


class TestAgentExecution:
    """Test agent execution and the __call__ wrapper."""

    @pytest.mark.asyncio
    async def test_successful_execution(self, sample_input):
        output = await EchoAgent(name="EchoAgent")(sample_input)

        assert output.success is True
        assert output.metadata.agent_name == "EchoAgent"
        assert output.metadata.duration_ms is not None
        assert output.metadata.completed_at is not None

    @pytest.mark.asyncio
    async def test_execution_with_delay_tracks_timing(self, sample_input):
        class SlowAgent(BaseAgent):
            async def execute(self, input: AgentInput) -> AgentOutput:
                await asyncio.sleep(0.05)
                return AgentOutput(success=True, metadata=self._create_metadata())

        output = await SlowAgent(name="SlowAgent")(sample_input)

        assert output.metadata.duration_ms >= 50


class TestErrorHandling:
    """Errors propagate once; nothing is retried."""

    @pytest.mark.asyncio
    async def test_agent_error_propagates_without_retry(self, sample_input):
        class FlakyAgent(BaseAgent):
            def __init__(self):
                super().__init__(name="FlakyAgent")
                self.attempts = 0

            async def execute(self, input: AgentInput) -> AgentOutput:
                self.attempts += 1
                raise GenerationError(agent=self.name, message="API timeout")

        agent = FlakyAgent()

        with pytest.raises(GenerationError) as exc_info:
            await agent(sample_input)

        assert agent.attempts == 1
        assert exc_info.value.recoverable is True
        assert agent._metadata.error is not None

    @pytest.mark.asyncio
    async def test_unexpected_error_wrapped_in_agent_error(self, sample_input):
        class BuggyAgent(BaseAgent):
            async def execute(self, input: AgentInput) -> AgentOutput:
                raise ValueError("Unexpected bug!")

        with pytest.raises(AgentError) as exc_info:
            await BuggyAgent(name="BuggyAgent")(sample_input)

        assert exc_info.value.agent == "BuggyAgent"
        assert "Unexpected error" in exc_info.value.message
        assert exc_info.value.recoverable is False
        assert exc_info.value.context["error_type"] == "ValueError"

    def test_agent_error_to_dict(self):
        error = AgentError(agent="A", message="boom", recoverable=False, context={"k": 1})

        assert str(error) == "[A] boom"
        assert error.to_dict() == {
            "agent": "A",
            "message": "boom",
            "recoverable": False,
            "context": {"k": 1},
            "type": "AgentError",
        }


class TestLLMTracking:
    """Test LLM call and token tracking."""

    @pytest.mark.asyncio
    async def test_track_llm_call_with_tokens(self, sample_input):
        class TokenAgent(BaseAgent):
            async def execute(self, input: AgentInput) -> AgentOutput:
                self._track_llm_call(tokens=100)
                self._track_llm_call(tokens=150)
                self._track_llm_call()
                return AgentOutput(success=True, metadata=self._metadata)

        output = await TokenAgent(name="TokenAgent")(sample_input)

        assert output.metadata.llm_calls == 3
        assert output.metadata.tokens_used == 250
