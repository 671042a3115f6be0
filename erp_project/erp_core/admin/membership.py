from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as DjangoUserAdmin
from django.utils.translation import gettext_lazy as _
from ..models import Client, Membership, User
from .actions import extend_subscriptions, grant_access, revoke_access
from .forms import UserAdminChangeForm, UserAdminCreationForm
from .inlines import MembershipInline
from .mixins import TenantAdminMixin


# Register `Client` model in admin with this custom config
@admin.register(Client)
class ClientAdmin(admin.ModelAdmin):
    """Subscription desk: browse clients, switch access, extend."""

    # columns shown in client list view
    list_display = (
        "client_code",
        "company_name",
        "contact_person",
        "subscription_status",
        "access_status",
        "subscription_start",
        "subscription_end",
        "last_login",
    )
    list_filter = ("subscription_status", "access_status")
    search_fields = ("company_name", "client_code", "email")
    readonly_fields = ("client_code", "slug", "last_login", "created_at")
    ordering = ("company_name",)
    actions = [extend_subscriptions, grant_access, revoke_access]
    inlines = [MembershipInline]

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        if request.user.is_superuser:
            return qs
        # staff only see the clients they are members of
        return qs.filter(memberships__user=request.user).distinct()


# Extend stock `DjangoUserAdmin`
@admin.register(User)  # Hook custom `User` model into Django Admin
class UserAdmin(DjangoUserAdmin):
    # Use custom forms you defined to create/edit views
    add_form = UserAdminCreationForm
    form = UserAdminChangeForm
    model = User

    # fields shown in list
    list_display = (
        "username", "email", "get_full_name", "is_staff", "default_client")
    list_filter = ("is_staff", "is_superuser", "is_active")
    search_fields = ("username", "email", "first_name", "last_name")
    ordering = ("username",)

    # Group fields logically on edit user page
    fieldsets = (
        (None, {"fields": ("username", "password")}),
        (_("Personal info"), {"fields":
                              ("first_name", "last_name", "email", "phone")}),
        (_("Client / Defaults"), {"fields": ("default_client",)}),
        # Keep stock Django grouping (`permissions`, `important dates`)
        (
            _("Permissions"),
            {
                "fields": (
                    "is_active",
                    "is_staff",
                    "is_superuser",
                    "groups",
                    "user_permissions",
                ),
            },
        ),
        (_("Important dates"), {"fields": ("last_login", "date_joined")}),
    )

    # Control which fields appear when creating a new user in admin
    add_fieldsets = (
        (
            None,
            {
                "classes": ("wide",),
                "fields": (
                    "username",
                    "email",
                    "default_client",
                    "password1",
                    "password2",
                ),
            },
        ),
    )

    # Tenant scoping:
    # limit visible users to memberships of the request.user's clients
    def get_queryset(self, request):
        qs = super().get_queryset(request)
        if request.user.is_superuser:
            return qs
        allowed_client_ids = request.user.memberships.values_list(
            "client_id", flat=True)
        # .distinct() prevents a user who belongs to multiple clients
        # appearing multiple times
        return qs.filter(memberships__client_id__in=allowed_client_ids).distinct()


# Register Membership model
@admin.register(Membership)
class MembershipAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = ("user", "client", "role", "is_active", "created_at")
    list_filter = ("role", "is_active", "client")
    search_fields = ("user__username", "user__email", "client__company_name")
    readonly_fields = ("created_at",)  # prevent tampering with creation date
    ordering = ("client__company_name", "user__username")

    def get_queryset(self, request):
        # Fetch everything in one SQL join
        return super().get_queryset(request).select_related("client", "user")

    def _managed_client_ids(self, request):
        # clients where the current user is Owner/Admin
        return set(
            request.user.memberships.filter(
                role__in=("owner", "admin"), is_active=True
            ).values_list("client_id", flat=True)
        )

    # To modify memberships
    def has_change_permission(self, request, obj=None):
        if request.user.is_superuser:
            return True
        managed = self._managed_client_ids(request)
        if obj is None:
            # list view: allowed if Owner/Admin somewhere
            return bool(managed)
        return obj.client_id in managed

    def has_delete_permission(self, request, obj=None):
        return self.has_change_permission(request, obj)

    def has_add_permission(self, request):
        if request.user.is_superuser:
            return True
        return bool(self._managed_client_ids(request))
