from django.apps import AppConfig


class ReservationsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.reservations"

    def ready(self) -> None:
        from shared.application.audit import log_domain_event
        from shared.application.message_bus import message_bus
        from shared.domain.base import DomainEvent

        from .application import command_handlers as handlers

        message_bus.register_event_handler(DomainEvent, log_domain_event)
        commands = {
            handlers.CreateReservationCommand: handlers.CreateReservationHandler(),
            handlers.CreateCompleteReservationCommand: handlers.CreateCompleteReservationHandler(),
            handlers.AttachLineItemCommand: handlers.AttachLineItemHandler(),
            handlers.DetachLineItemCommand: handlers.DetachLineItemHandler(),
            handlers.ConfirmReservationCommand: handlers.ConfirmReservationHandler(),
            handlers.CompleteReservationCommand: handlers.CompleteReservationHandler(),
            handlers.CancelReservationCommand: handlers.CancelReservationHandler(),
            handlers.DeleteReservationCommand: handlers.DeleteReservationHandler(),
        }
        for command_type, handler in commands.items():
            if not message_bus.has_command_handler(command_type):
                message_bus.register_command_handler(command_type, handler.handle)
