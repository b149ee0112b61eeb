"""
Resource creation for completed chat flows.

A conversation reserves its id with ResourceCreator.reserve_id(flow_type)
when the flow starts and ends with create(flow_type, data, resource_id),
which returns the id (QUO-XXXXXXXX, SRV-XXXXXXXX, CLI-XXXXXXXX).
Creating the same reserved id twice stores one resource.
"""

import random
import string
import logging
from datetime import datetime
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

ID_PREFIXES = {
    'quotation': 'QUO',
    'service': 'SRV',
    'client': 'CLI',
}
DEFAULT_ID_PREFIX = 'RES'
ID_ALPHABET = string.ascii_uppercase + string.digits
ID_LENGTH = 8


def generate_resource_id(flow_type: str, random_source: Optional[random.Random] = None) -> str:
    """Prefixed id with 8 uppercase alphanumerics, e.g. QUO-7K2M9QXA."""
    rng = random_source or random
    suffix = ''.join(rng.choice(ID_ALPHABET) for _ in range(ID_LENGTH))
    return f"{ID_PREFIXES.get(flow_type, DEFAULT_ID_PREFIX)}-{suffix}"


class ResourceCreator:
    """Id-only creator; the resource itself is not stored."""

    def __init__(self, random_source: Optional[random.Random] = None):
        self.random_source = random_source or random.Random()

    def reserve_id(self, flow_type: str) -> str:
        return generate_resource_id(flow_type, self.random_source)

    def create(self, flow_type: str, data: Dict[str, Any], resource_id: Optional[str] = None) -> str:
        resource_id = resource_id or self.reserve_id(flow_type)
        if flow_type == 'quotation':
            logger.info(f"Created quotation {resource_id} for client {data.get('clientName')}")
        elif flow_type in ('service', 'client'):
            logger.info(f"Created {flow_type} {resource_id}: {data.get('name')}")
        else:
            logger.info(f"Created resource {resource_id} ({flow_type})")
        return resource_id


class DatabaseResourceCreator(ResourceCreator):
    """Also persists a Quotation / ServiceOffering / Client row and a CREATED event."""

    def __init__(self, session_factory, random_source: Optional[random.Random] = None):
        super().__init__(random_source)
        self.session_factory = session_factory

    def create(self, flow_type: str, data: Dict[str, Any], resource_id: Optional[str] = None) -> str:
        resource_id = super().create(flow_type, data, resource_id)
        record = self._build_record(resource_id, flow_type, data)
        if record is None:
            return resource_id

        db = self.session_factory()
        try:
            if db.get(type(record), resource_id) is not None:
                logger.info(f"{resource_id} already stored, skipping insert")
                return resource_id
            db.add(record)
            db.add(self._build_event(resource_id, flow_type))
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()
        return resource_id

    @staticmethod
    def _build_event(resource_id: str, flow_type: str):
        from database.models import EventLog

        return EventLog(
            timestamp=datetime.utcnow(),
            entity_type=flow_type,
            entity_id=resource_id,
            event_type='CREATED',
            description=f"Created {flow_type} {resource_id} from chat"
        )

    @staticmethod
    def _build_record(resource_id: str, flow_type: str, data: Dict[str, Any]):
        from database.models import Quotation, ServiceOffering, Client

        if flow_type == 'quotation':
            return Quotation(
                id=resource_id,
                client_name=data.get('clientName', ''),
                client_email=data.get('clientEmail'),
                services=data.get('services'),
                urgency=data.get('urgency') or None,
            )
        if flow_type == 'service':
            return ServiceOffering(
                id=resource_id,
                name=data.get('name', ''),
                category=data.get('category'),
                description=data.get('description'),
                price=float(data['price']) if data.get('price') else None,
                unit=data.get('unit'),
            )
        if flow_type == 'client':
            return Client(
                id=resource_id,
                name=data.get('name', ''),
                email=data.get('email'),
                phone=data.get('phone') or None,
                address=data.get('address') or None,
            )
        logger.warning(f"No table for flow type {flow_type}, {resource_id} not stored")
        return None
