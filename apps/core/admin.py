from django.contrib import admin
from .models import Account, Room, Service, Variation, PricingTier, Event, EventService, Invoice, Payment

@admin.register(Account)
class AccountAdmin(admin.ModelAdmin):
    list_display = ['id', 'full_name', 'email', 'role', 'is_active']
    list_filter = ['role', 'is_active']
    search_fields = ['full_name', 'email']

@admin.register(Room)
class RoomAdmin(admin.ModelAdmin):
    list_display = ['id', 'name', 'status', 'guest_capacity', 'is_active']
    list_filter = ['status', 'is_active']

@admin.register(Service)
class ServiceAdmin(admin.ModelAdmin):
    list_display = ['id', 'name', 'service_type', 'is_active', 'is_available']

@admin.register(Variation)
class VariationAdmin(admin.ModelAdmin):
    list_display = ['id', 'service', 'name', 'base_price', 'duration_hours', 'is_active']

@admin.register(PricingTier)
class PricingTierAdmin(admin.ModelAdmin):
    list_display = ['id', 'variation', 'price_modifier', 'valid_from', 'valid_to', 'is_active']
    list_filter = ['is_active']

@admin.register(Event)
class EventAdmin(admin.ModelAdmin):
    list_display = ['id', 'name', 'room', 'status', 'start_time', 'end_time', 'estimated_cost']
    list_filter = ['status']

@admin.register(EventService)
class EventServiceAdmin(admin.ModelAdmin):
    list_display = ['id', 'event', 'service', 'variation', 'status', 'scheduled_time']

@admin.register(Invoice)
class InvoiceAdmin(admin.ModelAdmin):
    list_display = ['id', 'invoice_number', 'event', 'total_amount', 'status', 'due_date']
    list_filter = ['status']

@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ['id', 'event', 'account', 'amount', 'method', 'status']
    list_filter = ['status', 'method']
