from prizewheel_be.app import create_app

# Entry point for WSGI servers, e.g. `gunicorn prizewheel_be.wsgi:app`
app = create_app()

if __name__ == '__main__':
    app.run(host='0.0.0.0', port=5000, debug=app.debug)
