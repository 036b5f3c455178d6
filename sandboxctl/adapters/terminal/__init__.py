"""Terminal adapters — click-based progress and prompts."""
