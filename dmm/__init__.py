"""dmm: an esoteric scripting language that spells its punctuation out."""

from dmm.lang.session import dump_ast, dump_tokens, run

__all__ = ["dump_ast", "dump_tokens", "run"]
