"""
SQLGeneratorAgent: natural language to PostgreSQL SELECT.

Grounds an injected LLM provider on the rendered schema description and
asks for a structured GeneratedQuery (sql, explanation, confidence,
assumptions, tables_used). The confidence score is self-reported and is
never treated as a correctness guarantee. The generated SQL is not
trusted: it still has to pass the safety gate before execution.
"""

import logging

from dbchat.agents.base import BaseAgent
from dbchat.config import Settings, get_settings
from dbchat.introspection.describer import describe
from dbchat.llm.base import BaseLLMProvider, StructuredOutputError
from dbchat.llm.factory import LLMProviderFactory
from dbchat.llm.models import LLMMessage, LLMRequest
from dbchat.models.agent import (
    GeneratedQuery,
    GenerationError,
    SQLGeneratorInput,
    SQLGeneratorOutput,
)
from dbchat.models.schema import SchemaSnapshot
from dbchat.prompts.loader import PromptLoader

logger = logging.getLogger(__name__)

SYSTEM_PROMPT_PATH = "agents/sql_generator.md"


class SQLGeneratorAgent(BaseAgent):
    """
    SQL generation agent.

    One LLM call per question, no self-correction loop and no retries.
    """

    def __init__(
        self,
        llm_provider: BaseLLMProvider | None = None,
        settings: Settings | None = None,
        prompts: PromptLoader | None = None,
    ):
        """
        Initialize SQLGeneratorAgent.

        Args:
            llm_provider: Optional LLM provider. If None, creates the provider
                configured for the "sql" agent.
            settings: Application settings (defaults to get_settings())
            prompts: Prompt loader (defaults to the packaged prompts)
        """
        super().__init__(name="SQLGeneratorAgent")

        self.config = settings or get_settings()
        self.llm = llm_provider or LLMProviderFactory.create_agent_provider(
            "sql", self.config.llm
        )
        self.prompts = prompts or PromptLoader()
        self.temperature = self.config.pipeline.sql_temperature

    async def execute(self, input: SQLGeneratorInput) -> SQLGeneratorOutput:
        """
        Generate SQL for ``input.query`` grounded on ``input.snapshot``.

        Raises:
            GenerationError: If the LLM fails or returns an invalid response
        """
        generated = await self.generate_sql(input.query, input.snapshot)
        return SQLGeneratorOutput(
            success=True,
            generated_query=generated,
            metadata=self._metadata,
        )

    async def generate_sql(self, question: str, snapshot: SchemaSnapshot) -> GeneratedQuery:
        """
        Convert a natural language question into a SELECT statement.

        Args:
            question: The user's question
            snapshot: Schema snapshot to ground generation on

        Returns:
            GeneratedQuery with sql, explanation, confidence, assumptions
            and tables_used

        Raises:
            GenerationError: If the question is blank, the provider call
                fails, or the response does not match GeneratedQuery
        """
        if not question or not question.strip():
            raise GenerationError(agent=self.name, message="Question must not be empty")

        logger.info(
            f"Generating SQL for question: {question[:100]}",
            extra={
                "question_length": len(question),
                "tables": snapshot.summary.total_tables,
                "provider": self.llm.provider_name,
            },
        )

        request = LLMRequest(
            messages=[
                LLMMessage(role="system", content=self.build_system_prompt(snapshot)),
                LLMMessage(role="user", content=question),
            ],
            temperature=self.temperature,
        )

        try:
            generated = await self.llm.generate_structured(request, GeneratedQuery)
        except StructuredOutputError as e:
            logger.error(f"LLM returned an invalid SQL generation response: {e}")
            raise GenerationError(
                agent=self.name,
                message=f"LLM returned an invalid response: {e}",
                context={"error_type": type(e).__name__},
            ) from e
        except Exception as e:
            logger.error(f"SQL generation call failed: {e}", exc_info=True)
            raise GenerationError(
                agent=self.name,
                message=f"Failed to generate SQL: {e}",
                context={"error_type": type(e).__name__},
            ) from e
        finally:
            self._track_llm_call()

        logger.info(
            "SQL generated successfully",
            extra={
                "confidence": generated.confidence,
                "tables_used": generated.tables_used,
                "prompt_version": self.prompts.get_metadata(SYSTEM_PROMPT_PATH).get("version"),
            },
        )
        return generated

    def build_system_prompt(self, snapshot: SchemaSnapshot) -> str:
        """Render the generation rules around the schema description."""
        return self.prompts.render(SYSTEM_PROMPT_PATH, schema_description=describe(snapshot))
