from __future__ import annotations

import json
import logging
import sys

from dotenv import load_dotenv

from learning_assistant.core.credentials import credentials_from_env
from learning_assistant.core.settings import AppSettings
from learning_assistant.orchestrators.tool_call_adapter import ToolCallAdapter


def main() -> None:
    load_dotenv()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    provider = sys.argv[1] if len(sys.argv) > 1 else "openai"
    message = sys.argv[2] if len(sys.argv) > 2 else "How do I make kimchi fried rice?"

    adapter = ToolCallAdapter(settings=AppSettings.from_env())
    result = adapter.run(provider, message, [], credentials_from_env())

    print("Assistant:", result.assistant_text)
    print(f"Videos: {len(result.video_results)}  Articles: {len(result.article_results)}")
    print("Metrics:", json.dumps(result.metrics, indent=2))


if __name__ == "__main__":
    main()
