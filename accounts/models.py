from django.contrib.auth.models import AbstractUser, UserManager
from django.core.validators import RegexValidator
from django.db import models


phone_validator = RegexValidator(
    regex=r"^\+?[\d\s\-()]+$",
    message="Please provide a valid phone number",
)


class CustomUserManager(UserManager):
    """Authenticate with email; username is optional."""
    use_in_migrations = True

    def _create_user(self, email, password, **extra_fields):
        if not email:
            raise ValueError("The email must be set")
        email = self.normalize_email(email).lower()
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_user(self, email, password=None, **extra_fields):
        extra_fields.setdefault("is_staff", False)
        extra_fields.setdefault("is_superuser", False)
        return self._create_user(email, password, **extra_fields)

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        if extra_fields.get("is_staff") is not True:
            raise ValueError("Superuser must have is_staff=True.")
        if extra_fields.get("is_superuser") is not True:
            raise ValueError("Superuser must have is_superuser=True.")
        return self._create_user(email, password, **extra_fields)

    def find_by_email(self, email):
        return self.filter(email__iexact=(email or "").strip()).first()


class CustomUser(AbstractUser):
    """
    A farmer account. Email is the login field, username is optional.
    Crops and tasks hang off it through the `crops` / `tasks` relations.
    """
    username = models.CharField(max_length=150, blank=True, null=True, unique=False)
    email = models.EmailField(unique=True)

    name = models.CharField(max_length=50)
    farm_location = models.CharField(max_length=100, blank=True, default="")
    phone_number = models.CharField(
        max_length=20, blank=True, default="", validators=[phone_validator]
    )
    updated_at = models.DateTimeField(auto_now=True)

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = ["name"]

    objects = CustomUserManager()

    def __str__(self) -> str:
        return self.email
