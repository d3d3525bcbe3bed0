from meteor import create_app, socketio

app = create_app()

if __name__ == '__main__':
    # Use SocketIO server so the duel tick loop and websockets run in dev
    socketio.run(app, debug=True)
