from .agent import AgentProvisioner, ensure_settings_for_role
from .base import ArtifactKind, Provisioner

__all__ = ["AgentProvisioner", "ArtifactKind", "Provisioner", "ensure_settings_for_role"]
