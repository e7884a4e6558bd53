from django.contrib import admin

from ledger_core.models import Account, MainGroup, Subgroup


class SubgroupInline(admin.TabularInline):
    model = Subgroup
    extra = 0
    fields = ("code", "name", "is_active")
    show_change_link = True


@admin.register(MainGroup)
class MainGroupAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "kind", "display_order")
    list_filter = ("kind",)
    ordering = ("display_order", "code")
    inlines = [SubgroupInline]


@admin.register(Subgroup)
class SubgroupAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "main_group", "is_active", "can_delete")
    list_filter = ("main_group", "is_active")
    search_fields = ("code", "name")
    list_select_related = ("main_group",)

    def has_delete_permission(self, request, obj=None):
        if obj and not obj.can_delete:
            return False
        return super().has_delete_permission(request, obj)


@admin.register(Account)
class AccountAdmin(admin.ModelAdmin):
    list_display = (
        "code",
        "name",
        "subgroup",
        "role",
        "account_type",
        "opening_balance",
        "current_balance",
        "status",
    )
    list_filter = ("status", "role", "account_type", "subgroup__main_group")
    search_fields = ("code", "name")
    list_select_related = ("subgroup", "subgroup__main_group")
    # maintained by voucher posting only
    readonly_fields = ("current_balance", "can_delete", "created_at")

    """ Code and subgroup freeze once the account has entries """

    def get_readonly_fields(self, request, obj=None):
        r = list(self.readonly_fields)
        if obj and obj.entries.exists():
            r += ["code", "subgroup"]
        return r

    def has_delete_permission(self, request, obj=None):
        if obj and not obj.can_delete:
            return False
        return super().has_delete_permission(request, obj)
