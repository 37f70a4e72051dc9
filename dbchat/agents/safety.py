"""
SQL Safety Gate

Read-only enforcement applied before any SQL reaches the database.

A statement is authorized only if it is a single SELECT:
- the trimmed text starts with the ``select`` token
- sqlparse finds exactly one statement (one trailing ``;`` is allowed)
- the parsed statement type is SELECT
- no data-modifying, DDL or DCL keyword appears outside literals and comments
- no side-effecting function is called

The original text is preserved in the verdict; only the checks are
case- and whitespace-insensitive. NO LLM calls, NO database access.
"""

import logging
import re
from dataclasses import dataclass

import sqlparse
from sqlparse.sql import Statement
from sqlparse.tokens import Comment, Keyword, Name, Punctuation, String, Whitespace

from dbchat.models.agent import UnsafeQueryError

logger = logging.getLogger(__name__)

_SELECT_PREFIX = re.compile(r"select\b", re.IGNORECASE)

DENIED_KEYWORDS = frozenset(
    {
        "INSERT",
        "UPDATE",
        "DELETE",
        "MERGE",
        "DROP",
        "CREATE",
        "ALTER",
        "TRUNCATE",
        "GRANT",
        "REVOKE",
        "COPY",
        "INTO",
        "CALL",
        "EXECUTE",
        "VACUUM",
        "LOCK",
        "REINDEX",
        "CLUSTER",
        "REFRESH",
        "SET",
        "RESET",
        "LISTEN",
        "NOTIFY",
        "PREPARE",
        "DEALLOCATE",
        "DISCARD",
    }
)

DENIED_FUNCTIONS = frozenset(
    {
        "nextval",
        "setval",
        "pg_terminate_backend",
        "pg_cancel_backend",
        "pg_reload_conf",
        "pg_rotate_logfile",
        "pg_advisory_lock",
        "pg_advisory_xact_lock",
        "pg_sleep",
        "set_config",
        "lo_import",
        "lo_export",
        "lo_unlink",
        "lo_create",
        "lo_creat",
        "lo_from_bytea",
        "lo_put",
        "lo_truncate",
        "lowrite",
        "query_to_xml",
        "query_to_xml_and_xmlschema",
        "query_to_xmlschema",
        "dblink",
        "dblink_exec",
        "pg_read_file",
        "pg_read_binary_file",
        "pg_ls_dir",
        "pg_file_write",
        "txid_current",
    }
)

_FUNCTION_CALL = re.compile(
    r"\b(" + "|".join(sorted(DENIED_FUNCTIONS, key=len, reverse=True)) + r")\s*\(",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class Authorized:
    """Proof that ``sql`` passed the gate."""

    sql: str


@dataclass(frozen=True)
class Rejected:
    """Verdict for a statement that failed the gate."""

    sql: str
    reason: str


Verdict = Authorized | Rejected


class SafetyGate:
    """Classifies SQL text as Authorized or Rejected."""

    name = "safety_gate"

    def check(self, sql: str) -> Verdict:
        """
        Classify ``sql`` without raising.

        Args:
            sql: Candidate statement

        Returns:
            Authorized carrying the original text, or Rejected with a reason
        """
        reason = self._find_violation(sql or "")
        if reason is None:
            return Authorized(sql)

        logger.warning(f"SQL rejected by safety gate: {reason}", extra={"sql": (sql or "")[:200]})
        return Rejected(sql, reason)

    def authorize(self, sql: str) -> Authorized:
        """
        Return Authorized or raise.

        Raises:
            UnsafeQueryError: If the statement is not a single read-only SELECT
        """
        verdict = self.check(sql)
        if isinstance(verdict, Rejected):
            raise UnsafeQueryError(
                agent=self.name,
                message=verdict.reason,
                sql=sql,
            )
        return verdict

    def _find_violation(self, sql: str) -> str | None:
        stripped = sql.strip()
        if not stripped:
            return "Query is empty"

        if not _SELECT_PREFIX.match(stripped):
            return "Only SELECT queries are allowed"

        statements = [s for s in sqlparse.parse(stripped) if not _is_empty_statement(s)]
        if len(statements) != 1:
            return "Multiple SQL statements detected - only a single SELECT is allowed"

        statement = statements[0]
        if statement.get_type() != "SELECT":
            return "Only SELECT queries are allowed"

        for token in statement.flatten():
            if token.ttype in Keyword and token.normalized.upper() in DENIED_KEYWORDS:
                return f"Disallowed keyword: {token.normalized.upper()}"

        function = _FUNCTION_CALL.search(_code_text(statement))
        if function:
            return f"Disallowed function: {function.group(1).lower()}"

        return None


def _is_empty_statement(statement: Statement) -> bool:
    """Only whitespace, comments and semicolons."""
    return all(
        token.ttype in Whitespace or token.ttype in Comment or token.ttype in Punctuation
        for token in statement.flatten()
    )


def _code_text(statement: Statement) -> str:
    """Statement text with string literals and comments blanked out."""
    parts = []
    for token in statement.flatten():
        if token.ttype in Comment:
            parts.append(" ")
        elif token.ttype in String.Symbol or token.ttype in Name:
            # Quoted identifiers still name functions
            parts.append(token.value.strip('"'))
        elif token.ttype in String:
            parts.append(" ")
        else:
            parts.append(token.value)
    return "".join(parts)


_DEFAULT_GATE = SafetyGate()


def check_sql(sql: str) -> Verdict:
    """Classify ``sql`` with the default gate."""
    return _DEFAULT_GATE.check(sql)


def authorize(sql: str) -> Authorized:
    """Authorize ``sql`` with the default gate, raising UnsafeQueryError."""
    return _DEFAULT_GATE.authorize(sql)
