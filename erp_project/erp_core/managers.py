from django.contrib.auth.base_user import BaseUserManager
from django.db import models


# -----------------------------------------
# Enforce tenant scoping across all models
# that belong to a client
# -----------------------------------------
class TenantQuerySet(models.QuerySet):
    def for_client(self, client):
        return self.filter(client=client)

    def active(self, client):
        return self.filter(
            client=client,   # enforce tenant scoping
            is_active=True,  # only fetch active records
        )
    # Enables query:
    # Customer.objects.active(request.client)


# Attach TenantQuerySet to .objects
class TenantManager(models.Manager.from_queryset(TenantQuerySet)):
    pass


class UserManager(BaseUserManager):
    """ Enforce rules around how users are created """

    use_in_migrations = True

    # Shared logic for both create_user() & create_superuser()
    def _create_user(self, username, email, password, **extra_fields):
        if not username:
            raise ValueError("The given username must be set")
        email = self.normalize_email(email)  # lowercases the domain part
        user = self.model(username=username, email=email, **extra_fields)
        user.set_password(password)  # Password is hashed
        user.save(using=self._db)
        return user

    def create_user(self, username, email=None, password=None, **extra_fields):
        extra_fields.setdefault("is_staff", False)
        extra_fields.setdefault("is_superuser", False)
        return self._create_user(username, email, password, **extra_fields)

    # Superusers must always have full privileges
    # Used by Django when running `createsuperuser`
    def create_superuser(self, username, email=None, password=None, **extra_fields):
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        if extra_fields.get("is_staff") is not True or extra_fields.get("is_superuser") is not True:
            raise ValueError("Superuser must have is_staff=True and is_superuser=True")
        return self._create_user(username, email, password, **extra_fields)

    def for_client(self, client):
        # users are linked to clients through memberships
        return self.filter(memberships__client=client)
