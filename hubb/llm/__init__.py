"""
Completion service boundary.

Responsibilities:
- Manage Groq API configuration and credentials.
- Forward role-tagged chat turns and return generated text.
- Build the trip-plan prompt and parse its JSON answer.
- Report unavailability and malformed output as recoverable errors.
"""
