from dataclasses import dataclass

from libb import ConfigOptions, scriptname

__all__ = [
    'D1Options',
    'DEFAULT_BASE_URL',
    'DEFAULT_TIMEOUT',
]

DEFAULT_BASE_URL = 'https://api.cloudflare.com/client/v4'
DEFAULT_TIMEOUT = 15


@dataclass
class D1Options(ConfigOptions):
    """Options

    Required: `account_id`, `api_token`, `database_id`.

    - timeout: Seconds before a request is abandoned (default: 15)
    - base_url: Cloudflare API root (default: v4 public API)
    - appname: Caller name recorded in logs (default: script name)
    """
    account_id: str = None
    api_token: str = None
    database_id: str = None
    timeout: float = DEFAULT_TIMEOUT
    base_url: str = DEFAULT_BASE_URL
    appname: str = None

    def __post_init__(self):
        missing = [name for name in ('account_id', 'api_token', 'database_id')
                   if not getattr(self, name)]
        if missing:
            raise ValueError(f'Missing required D1 options: {", ".join(missing)}')
        if not self.timeout or self.timeout <= 0:
            raise ValueError('timeout must be a positive number of seconds')
        self.base_url = self.base_url.rstrip('/')
        self.appname = self.appname or scriptname() or 'python_console'

    @property
    def api_url(self) -> str:
        """Query endpoint for the configured account and database."""
        return (f'{self.base_url}/accounts/{self.account_id}'
                f'/d1/database/{self.database_id}/query')

    def __repr__(self) -> str:
        return (f'D1Options(account_id={self.account_id!r}, database_id={self.database_id!r}, '
                f'timeout={self.timeout!r}, base_url={self.base_url!r})')
