"""
Routers module - API endpoint handlers organized by feature.

Each router handles a specific domain of the API:
- assistant: range inference, streamed reply, action execution
- calendar: event listing for a window
"""
