"""Summary: Application factory wiring core services.

Importance: Centralizes collaborator creation for the CLI and API layers.
Alternatives: Instantiate services manually in each entrypoint.
"""

from __future__ import annotations

from dataclasses import dataclass

import firebase_admin
from firebase_admin import firestore as firebase_firestore

from smartlist.config import AppConfig
from smartlist.identity import IdentityProvider, IdentityProviderFactory, build_firebase_app
from smartlist.repositories import AccountRepository, NoteRepository
from smartlist.services import AnalyticsService, AuthService, NoteService
from smartlist.storage.document_store import DocumentStore, InMemoryDocumentStore
from smartlist.storage.firestore_store import FirestoreDocumentStore


@dataclass(frozen=True)
class AppContext:
    """Summary: Process-wide collaborator handles.

    Importance: The store and identity provider are created once at startup and injected.
    Alternatives: Resolve provider singletons through global lookups.
    """

    store: DocumentStore
    identity: IdentityProvider
    config: AppConfig

    def services(self) -> "AppServices":
        """Summary: Build the service bundle over the shared collaborators.

        Importance: Every service receives its collaborators explicitly.
        Alternatives: Construct services per request.
        """

        accounts = AccountRepository(self.store)
        notes = NoteRepository(self.store, audio_root=self.config.audio_root)
        return AppServices(
            notes=NoteService(notes=notes),
            analytics=AnalyticsService(notes=notes),
            auth=AuthService(accounts=accounts, identity=self.identity),
            identity=self.identity,
            store=self.store,
        )


@dataclass(frozen=True)
class AppServices:
    """Summary: Bundle of core services for SmartList.

    Importance: Simplifies passing dependencies to the CLI or API layers.
    Alternatives: Use a dependency injection container.
    """

    notes: NoteService
    analytics: AnalyticsService
    auth: AuthService
    identity: IdentityProvider
    store: DocumentStore


def build_document_store(
    config: AppConfig, firebase_app: firebase_admin.App | None = None
) -> DocumentStore:
    """Summary: Construct the configured document store.

    Importance: Keeps backend selection in one place.
    Alternatives: Branch on configuration inside repositories.
    """

    if config.document_store == "firestore":
        app = firebase_app or build_firebase_app(config)
        return FirestoreDocumentStore(firebase_firestore.client(app))
    if config.document_store == "memory":
        return InMemoryDocumentStore()
    raise ValueError(f"Unknown document store: {config.document_store}")


def build_context(config: AppConfig) -> AppContext:
    """Summary: Build shared context for services.

    Importance: Initializes the Firebase app at most once and shares it between collaborators.
    Alternatives: Construct dependencies separately per request.
    """

    firebase_app = None
    if config.document_store == "firestore" or config.identity_provider == "firebase":
        firebase_app = build_firebase_app(config)
    store = build_document_store(config, firebase_app)
    identity = IdentityProviderFactory(config).build(firebase_app)
    return AppContext(store=store, identity=identity, config=config)


def build_services(config: AppConfig) -> AppServices:
    """Summary: Build core services from configuration.

    Importance: Provides a single construction path for the application.
    Alternatives: Instantiate services directly within the CLI entrypoint.
    """

    return build_context(config).services()
