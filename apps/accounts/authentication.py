from rest_framework import authentication, exceptions

from apps.core.exceptions import BackendUnavailableError

from .services.identity import resolve_user


class BackendUnavailable(exceptions.APIException):
    """Database could not be reached while authenticating."""
    status_code = 503
    default_detail = 'Service temporarily unavailable, please retry.'
    default_code = 'backend_unavailable'


class CoupleTokenAuthentication(authentication.BaseAuthentication):
    """
    Authenticate with the opaque couple token.

    Clients send ``Authorization: Token <auth_token>``. A missing, malformed,
    expired or unknown token leaves the request anonymous, so protected views
    answer 401 and the client re-runs onboarding.
    """

    keyword = 'Token'

    def authenticate(self, request):
        auth = authentication.get_authorization_header(request).split()

        if not auth or auth[0].lower() != self.keyword.lower().encode():
            return None

        if len(auth) != 2:
            return None

        try:
            token = auth[1].decode()
        except UnicodeError:
            return None

        try:
            user = resolve_user(token)
        except BackendUnavailableError:
            raise BackendUnavailable()

        if user is None:
            return None

        return (user, token)

    def authenticate_header(self, request):
        return self.keyword
