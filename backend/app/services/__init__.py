# Services package init
"""
Mindtrail Backend - Services Layer
===================================

What:  Business logic between the routes (HTTP) and the models (persistence).
How:   Stateless singletons; the request's database session is passed in on
       every call.

Service Inventory:
    - AuthService: registration, login, bearer-token verification
    - RecordService: the six form saves
    - ProfileService: aggregated per-user read
    - ChatCompletionClient (abstract): interface for summarization providers
    - OpenAIChatClient: concrete provider over the OpenAI HTTP API
    - SummaryService: per-call transcripts and fail-soft summarization
"""
