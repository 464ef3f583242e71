"""
Customer-support conversation flows.

Each module exposes a build_*_dialog factory returning a WaterfallDialog;
register_support_flows adds all five to a DialogSet.
"""
from __future__ import annotations

from backend.lookup import ServiceTagLookup
from config.settings import Settings, get_settings
from dialogs.stack import DialogSet
from flows.greeting import GREETING_DIALOG, build_greeting_dialog
from flows.order_status import ORDER_STATUS_DIALOG, build_order_status_dialog
from flows.service_request import SERVICE_REQUEST_DIALOG, build_service_request_dialog
from flows.tech_support import TECH_SUPPORT_DIALOG, build_tech_support_dialog
from flows.warranty_status import WARRANTY_STATUS_DIALOG, build_warranty_status_dialog
from models.schemas import UserProfile
from state.accessor import StatePropertyAccessor

SUPPORT_DIALOGS = (
    GREETING_DIALOG,
    ORDER_STATUS_DIALOG,
    SERVICE_REQUEST_DIALOG,
    TECH_SUPPORT_DIALOG,
    WARRANTY_STATUS_DIALOG,
)


def register_support_flows(
    dialogs: DialogSet,
    profile_accessor: StatePropertyAccessor[UserProfile],
    lookup: ServiceTagLookup,
    settings: Settings = None,
) -> DialogSet:
    bot_config = (settings or get_settings()).bot
    dialogs.add(build_greeting_dialog(profile_accessor))
    dialogs.add(build_order_status_dialog(profile_accessor, bot_config))
    dialogs.add(build_service_request_dialog(profile_accessor, bot_config))
    dialogs.add(build_tech_support_dialog(profile_accessor, lookup, bot_config))
    dialogs.add(build_warranty_status_dialog(profile_accessor, lookup, bot_config))
    return dialogs
