"""
Google Environment Module - Google Workspace Integration

- calendar: Google Calendar API client and schemas
"""
