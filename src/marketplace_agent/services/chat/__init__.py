"""Chat service package.

The DialogueOrchestrator (``orchestrator``) coordinates:
1. Intent classification (via IntentClassifier)
2. Handler dispatch (via HandlerRegistry)
3. Prompt and context assembly (``prompt``)
4. Reply generation and persistence

Import from the submodules directly; ``services.llm`` depends on ``prompt``,
so this package keeps no eager imports.
"""
