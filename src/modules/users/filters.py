import django_filters

from modules.users.models import User


class UserFilter(django_filters.FilterSet):
    name = django_filters.CharFilter(field_name="name", lookup_expr="icontains")
    email = django_filters.CharFilter(field_name="email", lookup_expr="iexact")
    company = django_filters.CharFilter(field_name="company", lookup_expr="icontains")

    class Meta:
        model = User
        fields = ["name", "email", "company"]
