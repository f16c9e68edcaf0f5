from .admin import router as admin_router
from .quiz_attempt import router as quiz_attempt_router

routes = [
    quiz_attempt_router,
    admin_router,
]
