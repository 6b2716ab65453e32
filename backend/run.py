import os

from courtside import create_app, server_options, socketio

app = create_app()

if __name__ == '__main__':
    # Use SocketIO server to enable websockets
    socketio.run(app, host='0.0.0.0', port=int(os.environ.get('PORT', '3001')), **server_options(app))
