"""
Classifier integration for AntiToxicity.

- **llm_payload_builder.py**: Annotates messages with their evasion-normalized
  form and builds the chat-completion request (system prompt plus a JSON
  payload with history and messages per player).

- **classifier_adapter.py**: Sends the request through AsyncOpenAI, detects
  content vetoes, retries once on the fallback model, and returns a
  ClassificationResult instead of raising.
"""
