from slowapi import Limiter
from slowapi.util import get_remote_address

from ..config import settings

limiter = Limiter(key_func=get_remote_address, default_limits=[])

REGISTER_LIMIT = f"{settings.RATE_LIMIT_PER_MINUTE}/minute"
# Более строгий лимит для логина (защита от брутфорса)
LOGIN_LIMIT = f"{settings.LOGIN_RATE_LIMIT_PER_MINUTE}/minute"
