from app.models.user import User
from app.models.form import Form, Question, Response, Answer

__all__ = [
    "User",
    "Form",
    "Question",
    "Response",
    "Answer",
]
