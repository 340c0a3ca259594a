from reviewdesk import create_app

app = create_app()
