from sword_shield import create_app, socketio

app = create_app()

if __name__ == '__main__':
    app.logger.info(
        f"Sword & Shield listening on port {app.config['PORT']} "
        f"(reconnect grace {app.config['RECONNECT_GRACE_SEC'] / 60:g}m)"
    )
    # Use SocketIO server to enable websockets
    socketio.run(app, host=app.config['HOST'], port=app.config['PORT'], allow_unsafe_werkzeug=True)
