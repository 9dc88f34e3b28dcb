"""
Lexical analyzer (tokenizer) for task queries.

The lexer is lenient: it never raises. Characters it does not recognise
(commas included) are skipped, and an unterminated string runs to the end of
the input.
"""

import re
from dataclasses import dataclass
from enum import Enum, auto

from taskql.config import QueryConfig, get_default_config


class TokenType(Enum):
    """Token types for task queries."""

    IDENTIFIER = auto()  # field names and bare values
    OPERATOR = auto()  # is, is not, includes, before, ...
    LOGICAL = auto()  # AND, OR, NOT
    LPAREN = auto()
    RPAREN = auto()
    STRING = auto()  # "quoted" or 'quoted'
    DATE = auto()  # YYYY-MM-DD
    TAG = auto()  # #tag
    KEYWORD = auto()  # sort, group, by, asc, desc
    EOF = auto()


@dataclass(frozen=True)
class Token:
    """A token in a task query."""

    type: TokenType
    value: str
    position: int

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.value!r}, {self.position})"


class QueryLexer:
    """Tokenizer for task queries."""

    KEYWORDS = frozenset({"sort", "group", "by", "asc", "desc"})
    LOGICALS = frozenset({"AND", "OR", "NOT"})
    DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

    def __init__(self, text: str, config: QueryConfig | None = None):
        self.text = text
        self.pos = 0
        self.tokens: list[Token] = []
        config = config or get_default_config()
        self.operators = frozenset(op.lower() for op in config.operators)
        self.multi_word_operators = frozenset(op.lower() for op in config.multi_word_operators)

    def tokenize(self) -> list[Token]:
        """Tokenize the entire input."""
        while self.pos < len(self.text):
            if self.text[self.pos].isspace():
                self.pos += 1
                continue

            if not self._try_tokenize_one():
                # Unknown character - skip it
                self.pos += 1

        self.tokens.append(Token(TokenType.EOF, "", self.pos))
        return self.tokens

    def _try_tokenize_one(self) -> bool:
        """Try to tokenize one token. Returns True if a token was consumed."""
        return (
            self._match_paren()
            or self._match_tag()
            or self._match_string()
            or self._match_word()
            or self._match_number()
        )

    def _match_paren(self) -> bool:
        char = self.text[self.pos]
        if char == "(":
            token_type = TokenType.LPAREN
        elif char == ")":
            token_type = TokenType.RPAREN
        else:
            return False

        self.tokens.append(Token(token_type, char, self.pos))
        self.pos += 1
        return True

    def _match_tag(self) -> bool:
        """Match tag literals; the value keeps its leading '#'."""
        if self.text[self.pos] != "#":
            return False

        start = self.pos
        self.pos += 1
        while self.pos < len(self.text) and (
            self.text[self.pos].isalnum() or self.text[self.pos] in "_/-"
        ):
            self.pos += 1

        self.tokens.append(Token(TokenType.TAG, self.text[start : self.pos], start))
        return True

    def _match_string(self) -> bool:
        """Match string literals. An unterminated string consumes the rest of the input."""
        quote = self.text[self.pos]
        if quote not in ('"', "'"):
            return False

        start = self.pos
        end = self.text.find(quote, start + 1)
        if end == -1:
            value = self.text[start + 1 :]
            self.pos = len(self.text)
        else:
            value = self.text[start + 1 : end]
            self.pos = end + 1

        self.tokens.append(Token(TokenType.STRING, value, start))
        return True

    def _match_word(self) -> bool:
        """Match identifiers, keywords, logical connectives and operators."""
        if not self.text[self.pos].isalpha():
            return False

        start = self.pos
        while self.pos < len(self.text) and (
            self.text[self.pos].isalnum() or self.text[self.pos] in "_."
        ):
            self.pos += 1
        word = self.text[start : self.pos]

        # Two-word operators such as "is not" or "not includes"
        next_word, next_end = self._peek_word()
        if next_word and f"{word} {next_word}".lower() in self.multi_word_operators:
            self.tokens.append(
                Token(TokenType.OPERATOR, f"{word} {next_word}".lower(), start)
            )
            self.pos = next_end
            return True

        if word.upper() in self.LOGICALS:
            self.tokens.append(Token(TokenType.LOGICAL, word.upper(), start))
        elif word.lower() in self.KEYWORDS:
            self.tokens.append(Token(TokenType.KEYWORD, word.lower(), start))
        elif word.lower() in self.operators:
            self.tokens.append(Token(TokenType.OPERATOR, word.lower(), start))
        else:
            self.tokens.append(Token(TokenType.IDENTIFIER, word, start))
        return True

    def _match_number(self) -> bool:
        """Match dates (YYYY-MM-DD) and other digit runs."""
        if not self.text[self.pos].isdigit():
            return False

        start = self.pos
        while self.pos < len(self.text) and (
            self.text[self.pos].isdigit() or self.text[self.pos] == "-"
        ):
            self.pos += 1
        value = self.text[start : self.pos]

        if self.DATE_PATTERN.match(value):
            self.tokens.append(Token(TokenType.DATE, value, start))
        else:
            self.tokens.append(Token(TokenType.IDENTIFIER, value, start))
        return True

    def _peek_word(self) -> tuple[str, int]:
        """Return the next whitespace-delimited word and the position after it."""
        start = self.pos
        while start < len(self.text) and self.text[start].isspace():
            start += 1
        end = start
        while end < len(self.text) and not self.text[end].isspace():
            end += 1
        return self.text[start:end], end


def tokenize(text: str, config: QueryConfig | None = None) -> list[Token]:
    """Tokenize a query string. Never raises."""
    return QueryLexer(text, config).tokenize()
