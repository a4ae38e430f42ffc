from prometheus_client import Counter, Histogram, generate_latest
from fastapi import Response

# Метрики для HTTP запросов
http_requests_total = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status']
)

http_request_duration_seconds = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint']
)

# Метрики для кэша
cache_hits_total = Counter('cache_hits_total', 'Total cache hits')
cache_misses_total = Counter('cache_misses_total', 'Total cache misses')
cache_errors_total = Counter('cache_errors_total', 'Cache backend errors', ['op'])

# Метрики наград и прогресса
xp_granted_total = Counter('xp_granted_total', 'Total XP granted', ['reason'])
achievements_awarded_total = Counter('achievements_awarded_total', 'Achievements awarded', ['code'])
lessons_completed_total = Counter('lessons_completed_total', 'First-time lesson completions')
game_scores_submitted_total = Counter('game_scores_submitted_total', 'Game scores submitted')


def metrics_endpoint():
    """Endpoint для Prometheus метрик"""
    return Response(content=generate_latest(), media_type="text/plain")
