from perplexity_gateway.mcp_server.schemas import ToolDescriptor


MESSAGES_INPUT_SCHEMA = {
    "type": "object",
    "properties": {
        "messages": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "role": {
                        "type": "string",
                        "description": "Role of the message (e.g., system, user, assistant)",
                    },
                    "content": {
                        "type": "string",
                        "description": "The content of the message",
                    },
                },
                "required": ["role", "content"],
            },
            "description": "Array of conversation messages",
        },
    },
    "required": ["messages"],
}


PERPLEXITY_ASK = ToolDescriptor(
    name="perplexity_ask",
    description=(
        "Engages in a conversation using the Sonar API. "
        "Accepts an array of messages (each with a role and content) "
        "and returns a chat completion response from the Perplexity model."
    ),
    input_schema=MESSAGES_INPUT_SCHEMA,
    backend_operation="sonar-pro",
)

PERPLEXITY_RESEARCH = ToolDescriptor(
    name="perplexity_research",
    description=(
        "Performs deep research using the Perplexity API. "
        "Accepts an array of messages (each with a role and content) "
        "and returns a comprehensive research response with citations."
    ),
    input_schema=MESSAGES_INPUT_SCHEMA,
    backend_operation="sonar-deep-research",
)

PERPLEXITY_REASON = ToolDescriptor(
    name="perplexity_reason",
    description=(
        "Performs reasoning tasks using the Perplexity API. "
        "Accepts an array of messages (each with a role and content) "
        "and returns a well-reasoned response using the sonar-reasoning-pro model."
    ),
    input_schema=MESSAGES_INPUT_SCHEMA,
    backend_operation="sonar-reasoning-pro",
)

PERPLEXITY_TOOLS = (PERPLEXITY_ASK, PERPLEXITY_RESEARCH, PERPLEXITY_REASON)
