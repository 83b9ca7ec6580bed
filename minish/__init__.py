"""A small interactive command shell with pipes, redirections and expansion."""

__version__ = "0.1.0"
__all__ = ["environment", "syntax", "expansion", "lexer", "redirection", "executor", "shell"]