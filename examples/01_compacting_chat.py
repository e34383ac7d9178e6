#!/usr/bin/env python3
"""Example 1: Compacting Chat - a scripted conversation that outgrows its budget.

Runs a sequence of coding requests against an OpenAI-compatible endpoint.
Once the reported prompt tokens pass 80% of the budget, older turns are
replaced by a summary before the next request.

Environment:
    API_KEY   - API key of the endpoint
    MODEL     - model name (default: gpt-4o-mini)
    BASE_URL  - optional OpenAI-compatible endpoint
    CHAT_HISTORY_TOKEN_LIMIT - token budget (default: 6000)
"""

import asyncio
import os

from chat_history import HistoryConfig, HistoryStore, Message
from chat_history.context import ConversationSummarizer, is_history_summary
from chat_history.llm import LLMConfig, OpenAIProvider
from chat_history.observability import LogConfig, configure_logging


# ============================================================================
# LLM configuration - OpenAI-compatible endpoint
# ============================================================================

LLM_CONFIG = LLMConfig(
    model=os.environ.get("MODEL", "gpt-4o-mini"),
    api_key=os.environ.get("API_KEY"),
    base_url=os.environ.get("BASE_URL"),
    temperature=0.7,
)

SYSTEM_PROMPT = "You are a friendly assistant. Always address the user by their name."

QUESTIONS = [
    "Please implement a high-performance bubble sort in C#",
    "Building on the bubble sort, implement a quick sort as well",
    "Now give me a high-performance bubble sort in Java",
    "Now a high-performance bubble sort in Python",
    "Now a high-performance bubble sort in JavaScript",
    "Now a high-performance bubble sort in Go",
    "Then build a complete C# project including benchmarks",
]


async def run_compacting_chat():
    """Drive the scripted conversation through a HistoryStore."""
    configure_logging(LogConfig())

    provider = OpenAIProvider(LLM_CONFIG)

    environ = dict(os.environ)
    environ.setdefault("CHAT_HISTORY_TOKEN_LIMIT", "6000")
    environ.setdefault("CHAT_HISTORY_STORAGE_PATH", "messages.json")
    config = HistoryConfig.from_env(environ=environ)

    store = HistoryStore.from_config(config, ConversationSummarizer(provider))
    await store.clear()
    await store.record_turn([Message.system(SYSTEM_PROMPT)])

    print("=" * 60)
    print(f"Compacting Chat - budget {config.token_limit} input tokens")
    print("=" * 60)

    for question in QUESTIONS:
        print(f"\nUser:\n{question}")
        await store.record_turn([Message.user(question)])

        context = await store.get_context()
        if any(is_history_summary(m) for m in context) and store.tracker.consumed == 0:
            print(f"\n[history compacted to {len(context)} messages]")

        response = await provider.generate(context)
        await store.record_turn([Message.assistant(response.content)])
        tokens = store.report_usage(response)

        print(f"\nAI:\n{response.content}")
        print(f"\n[prompt tokens: {tokens}, budget used: {store.tracker.usage_ratio:.0%}]")


if __name__ == "__main__":
    asyncio.run(run_compacting_chat())
