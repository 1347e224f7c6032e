from rest_framework_simplejwt.authentication import JWTAuthentication

TOKEN_QUERY_PARAM = "token"


class QueryParamJWTAuthentication(JWTAuthentication):
    """
    Bearer access tokens, also accepted as ``?token=<access>``.

    Browser EventSource connections cannot set an Authorization header, so the
    event stream takes the access token from the query string instead.
    """

    def authenticate(self, request):
        result = super().authenticate(request)
        if result is not None:
            return result

        raw_token = request.query_params.get(TOKEN_QUERY_PARAM)
        if not raw_token:
            return None
        validated_token = self.get_validated_token(raw_token)
        return self.get_user(validated_token), validated_token
