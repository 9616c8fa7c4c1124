"""Studio state components and the session facade."""
