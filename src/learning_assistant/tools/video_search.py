from __future__ import annotations

from learning_assistant.tools.definitions import ToolParameter, ToolSpec

VIDEO_SEARCH = "video_search"

VIDEO_SEARCH_TOOL_SPEC = ToolSpec(
    name=VIDEO_SEARCH,
    description=(
        "Search for educational videos related to the topic. Use this when the user "
        "wants to learn something or needs video tutorials."
    ),
    parameters={
        "query": ToolParameter(
            type="string",
            description=(
                "The search query for finding relevant videos "
                '(e.g., "how to make fried rice tutorial")'
            ),
        ),
        "maxResults": ToolParameter(
            type="number",
            description="Maximum number of videos to return (default: 10)",
            default=10,
        ),
    },
    required=("query",),
)
