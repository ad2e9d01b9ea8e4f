from __future__ import annotations

from learning_assistant.tools.definitions import ToolParameter, ToolSpec

WEB_SEARCH = "web_search"

WEB_SEARCH_TOOL_SPEC = ToolSpec(
    name=WEB_SEARCH,
    description=(
        "Search the web for articles, tutorials, and guides related to the topic. "
        "Use this to find written resources and step-by-step guides."
    ),
    parameters={
        "query": ToolParameter(
            type="string",
            description=(
                "The search query for finding relevant articles and tutorials "
                '(e.g., "fried rice recipe guide")'
            ),
        ),
        "maxResults": ToolParameter(
            type="number",
            description="Maximum number of results to return (default: 10)",
            default=10,
        ),
    },
    required=("query",),
)
