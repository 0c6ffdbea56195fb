from .content import ContentKind, ContentItem, Assignment, Quiz, MODELS_BY_KIND
from .submissions import Submission, QuizAttempt
