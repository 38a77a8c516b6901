"""
SkillSync Feedback Service - course and trainer feedback backend
"""
__version__ = "1.0.0"
