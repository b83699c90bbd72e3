"""API route package — imports all routers for main.py."""

from app.api.health import router as health_router  # noqa: F401
from app.api.users import router as users_router  # noqa: F401
from app.api.quizzes import router as quizzes_router  # noqa: F401
from app.api.leaderboard import router as leaderboard_router  # noqa: F401
from app.api.prizes import router as prizes_router  # noqa: F401
from app.api.wallet import router as wallet_router  # noqa: F401
from app.api.scoring import router as scoring_router  # noqa: F401
from app.api.admin import router as admin_router  # noqa: F401
