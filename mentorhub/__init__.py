"""
MentorHub circles backend.

Mentors publish circles, mentees apply and take part in sessions,
resources and discussion. The capacity and governance rules for circles
live in mentorhub.services.circles.
"""

__version__ = "1.0.0"
