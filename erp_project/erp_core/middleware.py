from django.utils.deprecation import MiddlewareMixin
from .models import Client


class CurrentClientMiddleware(MiddlewareMixin):
    # Run on every request and attach a .client attribute (the tenant)
    # based on the logged-in user
    def process_request(self, request):
        if not request.user.is_authenticated:
            # Unauthenticated users never see tenant data
            request.client = None
            return

        # Default client fallback: if user didn't choose a client
        request.client = getattr(request.user, "default_client", None)

        # If user switched clients, the choice is stored in the session
        client_id = request.session.get("active_client_id")
        if client_id:
            # user must be an active member of that client; a stale or
            # tampered choice falls back to the default client
            chosen = Client.objects.filter(
                id=client_id,
                memberships__user=request.user,
                memberships__is_active=True,
            ).first()
            if chosen is not None:
                request.client = chosen
