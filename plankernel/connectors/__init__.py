from .chat_completion import ChatCompletionClient, ChatTextResult

__all__ = ["ChatCompletionClient", "ChatTextResult"]
