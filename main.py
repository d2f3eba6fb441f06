"""Simple entrypoint to inspect the local wardrobe state."""

from wardrobe_app.app import WardrobeApp


def main() -> None:
    app = WardrobeApp()
    identity = app.restore_session()
    who = identity.display_name or identity.id if identity else "guest"
    print(f"Signed in as: {who}")
    print(f"AI configured: {app.is_ai_configured()}")
    print(f"Closet items: {len(app.store.clothes)}; saved outfits: {len(app.store.outfits)}")


if __name__ == "__main__":
    main()
