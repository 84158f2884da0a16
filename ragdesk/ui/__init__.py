"""NiceGUI interface - thin visualization layer over the remote backend.

Pages:
    - /: Chat with streaming answers, source downloads and stop control
    - /knowledge: Knowledge base and document management
    - /intake: Step-by-step carbon data intake, company lookup and reports

Contains minimal business logic. Delegates all operations to the clients in
``ragdesk.chat``, ``ragdesk.api`` and ``ragdesk.intake``.
"""
