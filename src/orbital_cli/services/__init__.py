"""Services layer: conversation store, AI provider, chat session, agent."""
