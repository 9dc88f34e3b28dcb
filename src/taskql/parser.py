"""
Parser for task queries.

Converts tokens into a ParsedQuery (filter AST plus sort and group clauses).

Parsing is lenient by default: a malformed comparison is dropped from the
filter instead of raising, so a half-typed query degrades to matching more
records rather than failing. Pass ``strict=True`` (or set ``TASKQL_STRICT``)
to get a QuerySyntaxError instead.
"""

from loguru import logger

from taskql.ast import (
    BLOCKED,
    BLOCKING,
    BLOCKS,
    ComparisonNode,
    GroupKey,
    LogicalNode,
    LogicalOperator,
    NotNode,
    ParsedQuery,
    QueryNode,
    SortDirection,
    SortKey,
)
from taskql.config import QueryConfig, get_default_config
from taskql.errors import QuerySyntaxError
from taskql.lexer import QueryLexer, Token, TokenType

VALUE_TOKENS = (TokenType.STRING, TokenType.DATE, TokenType.TAG, TokenType.IDENTIFIER)


class QueryParser:
    """Recursive-descent parser for task queries."""

    def __init__(
        self,
        tokens: list[Token],
        config: QueryConfig | None = None,
        strict: bool | None = None,
    ):
        self.tokens = tokens
        self.pos = 0
        self.config = config or get_default_config()
        self.strict = self.config.strict if strict is None else strict

    @classmethod
    def parse(
        cls,
        query_text: str,
        strict: bool | None = None,
        config: QueryConfig | None = None,
    ) -> ParsedQuery:
        """Parse a query string into a ParsedQuery."""
        tokens = QueryLexer(query_text, config).tokenize()
        parser = cls(tokens, config=config, strict=strict)
        return parser.parse_query()

    def parse_query(self) -> ParsedQuery:
        """Parse the complete query."""
        filter_node = None
        if not self._is_at_end() and not self._at_clause():
            filter_node = self._parse_expression()

        sort: tuple[SortKey, ...] | None = None
        group: GroupKey | None = None
        while not self._is_at_end():
            if self._check(TokenType.KEYWORD, "sort"):
                keys = self._parse_sort_clause()
                if sort:
                    logger.debug("Ignoring repeated sort clause")
                elif keys:
                    sort = keys
            elif self._check(TokenType.KEYWORD, "group"):
                key = self._parse_group_clause()
                if group:
                    logger.debug("Ignoring repeated group clause")
                elif key:
                    group = key
            else:
                self._fail(f"Unexpected token {self._current().value!r}", self._current())
                self._advance()

        return ParsedQuery(filter=filter_node, sort=sort, group=group)

    def _parse_expression(self) -> QueryNode | None:
        """Parse an expression (handles operator precedence)."""
        return self._parse_or_expression()

    def _parse_or_expression(self) -> QueryNode | None:
        """Parse OR expression."""
        left = self._parse_and_expression()

        while self._check(TokenType.LOGICAL, "OR"):
            op_token = self._advance()
            right = self._parse_and_expression()
            if right is None:
                self._fail("Expected expression after OR", op_token)
                continue
            left = right if left is None else LogicalNode(LogicalOperator.OR, left, right)

        return left

    def _parse_and_expression(self) -> QueryNode | None:
        """Parse AND expression."""
        left = self._parse_not_expression()

        while self._check(TokenType.LOGICAL, "AND"):
            op_token = self._advance()
            right = self._parse_not_expression()
            if right is None:
                self._fail("Expected expression after AND", op_token)
                continue
            left = right if left is None else LogicalNode(LogicalOperator.AND, left, right)

        return left

    def _parse_not_expression(self) -> QueryNode | None:
        """Parse NOT expression."""
        if self._check(TokenType.LOGICAL, "NOT"):
            self._advance()
            operand = self._parse_not_expression()
            if operand is None:
                return None
            return NotNode(operand=operand)

        return self._parse_primary_expression()

    def _parse_primary_expression(self) -> QueryNode | None:
        """Parse a parenthesized expression or a comparison."""
        if self._check(TokenType.LPAREN):
            self._advance()
            expr = self._parse_expression()
            if self._check(TokenType.RPAREN):
                self._advance()
            else:
                self._fail("Expected ')' after expression", self._current())
            return expr

        return self._parse_comparison()

    def _parse_comparison(self) -> QueryNode | None:
        """Parse a comparison (field operator value) or one of the shortcut forms."""
        token = self._current()

        if token.type == TokenType.OPERATOR:
            return self._parse_dependency_state()

        if token.type != TokenType.IDENTIFIER:
            self._fail(f"Expected field name, got {token.value or 'end of query'!r}", token)
            return None

        field = self._advance().value

        if self._check(TokenType.OPERATOR):
            operator = self._advance().value
            value = self._parse_value()
            if value is None:
                self._fail(f"Expected value after {operator!r}", self._current())
                return None
            return ComparisonNode(field=field, operator=operator, value=value)

        return self._parse_shortcut(field)

    def _parse_shortcut(self, word: str) -> QueryNode | None:
        """Parse operator-less forms: 'blocks X', 'done', 'cancelled', 'overdue'."""
        lowered = word.lower()

        if lowered == BLOCKS:
            value = self._parse_value()
            if value is None:
                self._fail("Expected task id after 'blocks'", self._current())
                return None
            return ComparisonNode(field=BLOCKS, operator="is", value=value)

        if lowered in self.config.status_shortcuts:
            return ComparisonNode(
                field="status", operator="is", value=self.config.status_shortcuts[lowered]
            )

        if lowered == "overdue":
            return LogicalNode(
                LogicalOperator.AND,
                ComparisonNode(field="due", operator="before", value="today"),
                ComparisonNode(
                    field="status",
                    operator="not in",
                    value=",".join(self.config.completed_statuses),
                ),
            )

        self._fail(f"Expected operator after {word!r}", self._current())
        return None

    def _parse_dependency_state(self) -> QueryNode | None:
        """Parse 'is blocked', 'is not blocked', 'is blocking', 'is not blocking'."""
        op_token = self._current()
        state = self._peek()
        if (
            op_token.value in ("is", "is not")
            and state.type == TokenType.IDENTIFIER
            and state.value.lower() in (BLOCKED, BLOCKING)
        ):
            self._advance()
            self._advance()
            return ComparisonNode(field=state.value.lower(), operator=op_token.value, value="true")

        self._fail(f"Expected field name before {op_token.value!r}", op_token)
        return None

    def _parse_value(self) -> str | None:
        """Parse a comparison value (string, date, tag or bare word)."""
        if self._current().type in VALUE_TOKENS:
            return self._advance().value
        return None

    def _parse_sort_clauses(self) -> tuple[SortKey, ...]:
        """Parse the field list after 'sort by'."""
        keys = []

        while self._check(TokenType.IDENTIFIER):
            field = self._advance().value

            direction = SortDirection.ASC
            if self._check(TokenType.KEYWORD, "asc") or self._check(TokenType.KEYWORD, "desc"):
                direction = SortDirection(self._advance().value)

            keys.append(SortKey(field=field, direction=direction))

        return tuple(keys)

    def _parse_sort_clause(self) -> tuple[SortKey, ...]:
        """Parse SORT BY clause."""
        self._advance()
        if not self._check(TokenType.KEYWORD, "by"):
            self._fail("Expected 'by' after 'sort'", self._current())
            return ()
        self._advance()

        keys = self._parse_sort_clauses()
        if not keys:
            self._fail("Expected field after 'sort by'", self._current())
        return keys

    def _parse_group_clause(self) -> GroupKey | None:
        """Parse GROUP BY clause."""
        self._advance()
        if not self._check(TokenType.KEYWORD, "by"):
            self._fail("Expected 'by' after 'group'", self._current())
            return None
        self._advance()

        if self._check(TokenType.IDENTIFIER):
            return GroupKey(field=self._advance().value)

        self._fail("Expected field after 'group by'", self._current())
        return None

    # Helper methods

    def _fail(self, message: str, token: Token) -> None:
        """Raise in strict mode, otherwise note the problem and carry on."""
        if self.strict:
            raise QuerySyntaxError(message, token.position)
        logger.debug(f"Lenient parse: {message} at position {token.position}")

    def _current(self) -> Token:
        """Get the current token."""
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return self.tokens[-1]  # EOF

    def _peek(self) -> Token:
        """Get the token after the current one."""
        if self.pos + 1 < len(self.tokens):
            return self.tokens[self.pos + 1]
        return self.tokens[-1]

    def _advance(self) -> Token:
        """Advance to the next token."""
        token = self._current()
        if not self._is_at_end():
            self.pos += 1
        return token

    def _check(self, token_type: TokenType, value: str | None = None) -> bool:
        """Check if the current token has the given type (and value)."""
        token = self._current()
        if token.type != token_type:
            return False
        return value is None or token.value == value

    def _at_clause(self) -> bool:
        return self._check(TokenType.KEYWORD, "sort") or self._check(TokenType.KEYWORD, "group")

    def _is_at_end(self) -> bool:
        """Check if we're at the end of tokens."""
        return self._current().type == TokenType.EOF


def parse(
    query_text: str,
    strict: bool | None = None,
    config: QueryConfig | None = None,
) -> ParsedQuery:
    """Parse a query string. Lenient unless strict mode is requested."""
    return QueryParser.parse(query_text, strict=strict, config=config)
