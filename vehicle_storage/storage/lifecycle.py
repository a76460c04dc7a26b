"""
Bucket Lifecycle Management

Object retention itself is decided by the garbage collector against the
catalog; the bucket lifecycle only handles what the catalog never sees:
incomplete multipart uploads, aborted after a configurable number of days.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from minio.commonconfig import ENABLED, Filter
from minio.lifecycleconfig import AbortIncompleteMultipartUpload, LifecycleConfig, Rule

from vehicle_storage.storage.gateway import ObjectStoreGateway

logger = logging.getLogger(__name__)


@dataclass
class RetentionPolicy:
    """
    Retention policy configuration
    """
    name: str
    abort_multipart_days: int
    prefix: str = ""
    enabled: bool = True
    description: str = ""


class LifecyclePolicyManager:
    """
    Lifecycle policy manager for the image bucket

    Features:
    - Abort of stale multipart uploads
    - Policy validation before deployment
    - Lifecycle status reporting
    """

    def __init__(self, gateway: ObjectStoreGateway, abort_multipart_days: int = 7):
        """
        Args:
            gateway: Store gateway for the target bucket
            abort_multipart_days: Days before incomplete multipart uploads are aborted
        """
        self.gateway = gateway
        self.policies: List[RetentionPolicy] = [
            RetentionPolicy(
                name="abort-incomplete-multipart",
                abort_multipart_days=abort_multipart_days,
                description=f"Abort incomplete multipart uploads after {abort_multipart_days} days",
            ),
        ]

    def validate_policies(self) -> List[str]:
        """
        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        names = [p.name for p in self.policies]
        if len(names) != len(set(names)):
            errors.append("Duplicate policy names found")

        for policy in self.policies:
            if not policy.name:
                errors.append("Policy name cannot be empty")
            if policy.abort_multipart_days < 1:
                errors.append(f"Policy '{policy.name}': days must be >= 1")
            if policy.abort_multipart_days > 3650:  # 10 years
                errors.append(f"Policy '{policy.name}': days exceeds maximum (3650)")

        return errors

    def create_lifecycle_config(self) -> LifecycleConfig:
        rules = []
        for policy in self.policies:
            if not policy.enabled:
                logger.info(f"Skipping disabled policy: {policy.name}")
                continue

            rules.append(Rule(
                status=ENABLED,
                rule_id=policy.name,
                rule_filter=Filter(prefix=policy.prefix),
                abort_incomplete_multipart_upload=AbortIncompleteMultipartUpload(
                    days_after_initiation=policy.abort_multipart_days,
                ),
            ))
        return LifecycleConfig(rules)

    def apply(self) -> bool:
        """
        Deploy the policies to the bucket.

        Returns:
            True if deployed, False if validation failed

        Raises:
            StoreWriteError: If the store rejects the configuration
        """
        errors = self.validate_policies()
        if errors:
            logger.error(f"Policy validation failed: {errors}")
            return False

        self.gateway.set_lifecycle(self.create_lifecycle_config())
        logger.info(
            f"Applied {len(self.policies)} lifecycle policies to bucket '{self.gateway.bucket_name}'"
        )
        return True

    def current(self) -> Optional[LifecycleConfig]:
        """Deployed configuration, None if absent or unreadable."""
        config = self.gateway.get_lifecycle()
        if config is None or not config.rules:
            return None
        return config

    def status(self) -> Dict[str, Any]:
        current_config = self.current()
        status: Dict[str, Any] = {
            'bucket': self.gateway.bucket_name,
            'policies_configured': len(self.policies),
            'policies_deployed': current_config is not None,
            'rules': [],
        }

        if current_config is not None:
            for rule in current_config.rules:
                abort = rule.abort_incomplete_multipart_upload
                status['rules'].append({
                    'id': rule.rule_id,
                    'status': rule.status,
                    'abort_multipart_days': abort.days_after_initiation if abort else None,
                    'expiration_days': rule.expiration.days if rule.expiration else None,
                })

        return status
