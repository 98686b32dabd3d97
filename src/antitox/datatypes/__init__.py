"""Plain data types shared across the engine: messages, verdicts, sanctions and classifier results."""
