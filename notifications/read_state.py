# Em: notifications/read_state.py

import logging

from common.exceptions import MalformedDataError

from .engine import derive_notifications

logger = logging.getLogger(__name__)

READ_NOTIFICATIONS_KEY = 'readNotifications'


class ReadNotifications:
    """ Conjunto de ids de notificações já lidas, gravado por utilizador. Só cresce. """

    def __init__(self, store, owner_id):
        self.store = store
        self.owner_id = owner_id

    def ids(self):
        try:
            stored = self.store.get(self.owner_id, READ_NOTIFICATIONS_KEY)
        except MalformedDataError:
            logger.warning("Lista de notificações lidas de %s corrompida; a recomeçar", self.owner_id)
            return frozenset()
        if not isinstance(stored, list):
            return frozenset()
        return frozenset(str(i) for i in stored)

    def mark_as_read(self, notification_id):
        current = self.ids()
        if notification_id in current:
            return current
        updated = current | {notification_id}
        self.store.set(self.owner_id, READ_NOTIFICATIONS_KEY, sorted(updated))
        return updated


def notifications_for(app_data, today=None):
    """ Notificações do utilizador carregado em 'app_data', já com o estado de leitura. """
    read_ids = ReadNotifications(app_data.store, app_data.owner_id).ids()
    return derive_notifications(app_data.jobs, app_data.clients, today=today, read_ids=read_ids)
