"""Draft, revise, and publish WeChat articles with a language model."""

__version__ = "0.1.0"
