"""Domain modules package."""

from app.modules.audit import models as audit_models  # noqa: F401
from app.modules.classes import models as classes_models  # noqa: F401
from app.modules.courses import models as courses_models  # noqa: F401
from app.modules.identity import models as identity_models  # noqa: F401
from app.modules.uploads import models as uploads_models  # noqa: F401
