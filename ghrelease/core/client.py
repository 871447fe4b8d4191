import structlog
from requests import Session
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

logger = structlog.get_logger('client')

RETRY_STATUSES = (500, 502, 503, 504)


def log_response(response, *args, **kwargs):
    """Response hook: one log line per HTTP call, with rate-limit budget."""
    log_kwargs = {
        'method': response.request.method,
        'url': response.url,
        'status': response.status_code,
        'elapsed': f"{response.elapsed.total_seconds():.3f}s",
    }
    remaining = response.headers.get('X-RateLimit-Remaining')
    limit = response.headers.get('X-RateLimit-Limit')
    if remaining and limit:
        log_kwargs['ratelimit'] = f"{remaining}/{limit}"
    logger.debug('HTTP Request', **log_kwargs)


def get_http_client(retries: int = 3, pool_size: int = 10) -> Session:
    """
    Returns a requests session with connection pooling and retries.

    Retries only cover idempotent methods (urllib3 default), so release
    creation and asset uploads are never replayed at the transport level.
    """
    session = Session()
    session.hooks['response'].append(log_response)

    retry_strategy = Retry(
        total=retries,
        backoff_factor=1,
        status_forcelist=list(RETRY_STATUSES),
        raise_on_status=False,
    )
    adapter = HTTPAdapter(
        pool_connections=pool_size,
        pool_maxsize=pool_size,
        max_retries=retry_strategy,
    )
    session.mount('https://', adapter)
    session.mount('http://', adapter)

    logger.debug('Initialized HTTP Client', retries=retries, pool_size=pool_size)
    return session
