from momentum import create_app, socketio

app = create_app()

if __name__ == '__main__':
    app.logger.info(
        f"[startup] production={app.config['IS_PRODUCTION']} host={app.config['PUBLIC_HOST']} port={app.config['PORT']}"
    )
    # Use SocketIO server to enable websockets in dev
    socketio.run(app, host='0.0.0.0', port=app.config['PORT'], debug=not app.config['IS_PRODUCTION'])
