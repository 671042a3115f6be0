class TenantAdminMixin:
    """
    Enforce tenant isolation in Django admin.
    Uses request.client (set by CurrentClientMiddleware)
    or falls back to request.user.default_client.
    """

    def _get_request_client(self, request):
        # prefer request.client (middleware)
        # but fallback to request.user.default_client if present
        client = getattr(request, "client", None)
        if client is None:
            user = getattr(request, "user", None)
            client = getattr(user, "default_client", None)
        return client

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        client = self._get_request_client(request)

        # If superuser, show everything;
        # otherwise restrict to client if available
        if request.user.is_superuser:
            return qs
        if client is None:
            # If no client available in request, return none
            return qs.none()
        return qs.filter(client=client)

    def formfield_for_foreignkey(self, db_field, request, **kwargs):
        """
        Restrict foreignkey dropdowns to the current client where appropriate.
        Example: account, customer/vendor, period fields that are client-scoped.
        """
        client = self._get_request_client(request)

        # If FK is to Client and user is not superuser,
        # restrict to user's client
        if db_field.name == "client" and not request.user.is_superuser:
            if client is not None:
                kwargs["queryset"] = db_field.related_model.objects.filter(pk=client.pk)
            else:
                kwargs["queryset"] = db_field.related_model.objects.none()
            return super().formfield_for_foreignkey(db_field, request, **kwargs)

        # if related model has a `client` field,
        # restrict it to request's client
        rel_model = getattr(db_field, "related_model", None)
        if (
            rel_model is not None
            and any(f.name == "client" for f in rel_model._meta.fields)
            and not request.user.is_superuser
        ):
            if client is not None:
                kwargs["queryset"] = rel_model._default_manager.filter(client=client)
            else:
                kwargs["queryset"] = rel_model._default_manager.none()

        return super().formfield_for_foreignkey(db_field, request, **kwargs)

    def save_model(self, request, obj, form, change):
        # Ensure object is always owned by client on save (unless superuser)
        if not request.user.is_superuser:
            client = self._get_request_client(request)
            if client is not None:
                obj.client = client
        super().save_model(request, obj, form, change)
