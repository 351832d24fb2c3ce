#!/usr/bin/env python3
"""
Lobby Chat Client - PyQt6 GUI

A single window with the chat transcript, an input line and shortcut buttons
for the lobby commands. Networking runs on a QThread with its own asyncio
event loop; received messages are marshalled to the GUI thread by signals.
"""

import asyncio
import html
import sys
import os
import threading
from typing import Optional

# PyQt6 imports
from PyQt6.QtWidgets import (
    QApplication, QMainWindow, QWidget, QVBoxLayout, QHBoxLayout,
    QTextBrowser, QLineEdit, QPushButton, QLabel, QInputDialog
)
from PyQt6.QtCore import QThread, pyqtSignal

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from common.constants import Commands, DEFAULT_HOST, DEFAULT_PORT
from common.protocol_definitions import (
    Message, ConnectionClosedError, ProtocolError, create_chat_message, read_message, write_message
)
from client.utils.config import ClientConfig
from client.utils.logger import logger


# ============================================================================
# CHAT WIDGET
# ============================================================================

class ChatWidget(QWidget):
    """Chat interface with text area and input."""

    message_sent = pyqtSignal(str)  # message text

    def __init__(self, config: Optional[ClientConfig] = None):
        super().__init__()
        self.config = config or ClientConfig()
        self.setup_ui()

    def setup_ui(self):
        """Setup chat interface UI."""
        layout = QVBoxLayout()
        layout.setSpacing(5)
        layout.setContentsMargins(5, 5, 5, 5)

        self.chat_text = QTextBrowser()
        self.chat_text.setReadOnly(True)
        self.chat_text.setStyleSheet("""
            QTextBrowser {
                background-color: #2C2C2C;
                color: #ECF0F1;
                border: 1px solid #34495E;
                border-radius: 5px;
                padding: 5px;
                font-size: 10pt;
            }
        """)
        layout.addWidget(self.chat_text)

        # Input area
        input_layout = QHBoxLayout()

        self.input_field = QLineEdit()
        self.input_field.setPlaceholderText("Type a message or /help...")
        self.input_field.setStyleSheet("""
            QLineEdit {
                background-color: #34495E;
                color: #ECF0F1;
                border: 1px solid #2C3E50;
                border-radius: 5px;
                padding: 5px;
            }
        """)
        self.input_field.returnPressed.connect(self.send_message)
        input_layout.addWidget(self.input_field)

        send_btn = QPushButton("Send")
        send_btn.clicked.connect(self.send_message)
        send_btn.setStyleSheet("""
            QPushButton {
                background-color: #3498DB;
                color: white;
                border: none;
                padding: 8px 15px;
                border-radius: 5px;
                font-weight: bold;
            }
            QPushButton:hover {
                background-color: #2980B9;
            }
        """)
        input_layout.addWidget(send_btn)

        layout.addLayout(input_layout)
        self.setLayout(layout)

    def send_message(self):
        """Send the typed line."""
        text = self.input_field.text().strip()
        if text:
            self.message_sent.emit(text)
            self.input_field.clear()

    def add_message(self, message: Message):
        """Append a received message to the transcript."""
        text = html.escape(message.text).replace('\n', '<br>')
        if message.is_notification:
            self.chat_text.append(f'<span style="color: #95A5A6;">{text}</span>')
        else:
            timestamp = message.timestamp.strftime(self.config.time_format)
            self.chat_text.append(
                f'<span style="color: #95A5A6;">[{timestamp}]</span> '
                f'<span style="color: #3498DB;">{html.escape(self.config.sender_name)}:</span> {text}'
            )

        # Auto scroll to bottom
        scrollbar = self.chat_text.verticalScrollBar()
        scrollbar.setValue(scrollbar.maximum())

    def add_status(self, text: str):
        """Append a local status line that did not come from the server."""
        self.chat_text.append(f'<i style="color: #E67E22;">{html.escape(text)}</i>')


# ============================================================================
# MAIN WINDOW
# ============================================================================

class ClientMainWindow(QMainWindow):
    """Main application window."""

    def __init__(self, server_host: str = DEFAULT_HOST, server_port: int = DEFAULT_PORT):
        super().__init__()
        self.config = ClientConfig(server_host, server_port)
        self.network_thread: Optional[NetworkThread] = None
        self.setWindowTitle(f"Lobby Chat - {server_host}:{server_port}")
        self.resize(640, 480)
        self.setup_ui()

    def setup_ui(self):
        central = QWidget()
        layout = QVBoxLayout()

        # Command shortcuts
        toolbar = QHBoxLayout()
        self.status_label = QLabel("Disconnected")
        toolbar.addWidget(self.status_label)
        toolbar.addStretch()
        for label, handler in (("Lobbies", self.on_list),
                               ("Create...", self.on_create),
                               ("Join...", self.on_join),
                               ("Leave", self.on_leave),
                               ("Help", self.on_help)):
            button = QPushButton(label)
            button.clicked.connect(handler)
            toolbar.addWidget(button)
        layout.addLayout(toolbar)

        self.chat_widget = ChatWidget(self.config)
        self.chat_widget.message_sent.connect(self.on_send_message)
        layout.addWidget(self.chat_widget)

        central.setLayout(layout)
        self.setCentralWidget(central)

    def connect_to_server(self) -> bool:
        """Start the network thread."""
        self.network_thread = NetworkThread(self.config.host, self.config.port, self.config.connect_timeout)
        self.network_thread.message_received.connect(self.chat_widget.add_message)
        self.network_thread.connected.connect(self.on_connected)
        self.network_thread.disconnected.connect(self.on_disconnected)
        self.network_thread.start()
        return True

    def on_connected(self):
        self.status_label.setText(f"Connected to {self.config.host}:{self.config.port}")
        self.chat_widget.add_status("Print /help for commands available.")

    def on_disconnected(self):
        self.status_label.setText("Disconnected")
        self.chat_widget.add_status("Disconnected from server.")

    def on_send_message(self, text: str):
        if self.network_thread is None:
            self.chat_widget.add_status("Not connected to server.")
            return
        self.network_thread.send_text(text)

    def _prompt_lobby(self, title: str) -> Optional[str]:
        name, ok = QInputDialog.getText(self, title, "Lobby name:")
        if ok and name.strip():
            return name.strip()
        return None

    def on_list(self):
        self.on_send_message(Commands.LIST)

    def on_help(self):
        self.on_send_message(Commands.HELP)

    def on_leave(self):
        self.on_send_message(Commands.DISCONNECT)

    def on_create(self):
        name = self._prompt_lobby("Create lobby")
        if name:
            self.on_send_message(f"{Commands.CREATE} {name}")

    def on_join(self):
        name = self._prompt_lobby("Join lobby")
        if name:
            self.on_send_message(f"{Commands.JOIN} {name}")

    def closeEvent(self, event):
        """Leave the server cleanly when the window closes."""
        if self.network_thread is not None:
            self.network_thread.stop()
            self.network_thread.wait(2000)
            self.network_thread = None
        super().closeEvent(event)


# ============================================================================
# NETWORK THREAD
# ============================================================================

class NetworkThread(QThread):
    """Thread for handling network communication."""

    message_received = pyqtSignal(object)  # Message
    connected = pyqtSignal()
    disconnected = pyqtSignal()

    def __init__(self, host: str, port: int, connect_timeout: float = 10.0):
        super().__init__()
        self.host = host
        self.port = port
        self.connect_timeout = connect_timeout
        self.reader: Optional[asyncio.StreamReader] = None
        self.writer: Optional[asyncio.StreamWriter] = None
        self.loop: Optional[asyncio.AbstractEventLoop] = None
        self.loop_ready = threading.Event()

    def run(self):
        """Run network loop."""
        self.loop = asyncio.new_event_loop()
        asyncio.set_event_loop(self.loop)
        self.loop_ready.set()
        try:
            self.loop.run_until_complete(self._connect_and_listen())
        finally:
            self.loop.close()

    async def _connect_and_listen(self):
        """Connect to server and emit every decoded message."""
        try:
            self.reader, self.writer = await asyncio.wait_for(
                asyncio.open_connection(self.host, self.port),
                timeout=self.connect_timeout
            )
            logger.log_connection(self.host, self.port, True)
            self.connected.emit()

            while True:
                message = await read_message(self.reader)
                self.message_received.emit(message)

        except asyncio.TimeoutError:
            logger.error(f"Connection timeout: could not reach {self.host}:{self.port}")
        except ConnectionClosedError:
            logger.info("Server closed the connection")
        except ProtocolError as e:
            logger.log_error("decoding message", e)
        except OSError as e:
            logger.log_error("network", e)
        except asyncio.CancelledError:
            pass
        finally:
            self.disconnected.emit()
            if self.writer:
                self.writer.close()
                try:
                    await self.writer.wait_closed()
                except (ConnectionError, OSError):
                    pass

    async def send_text_async(self, text: str):
        """Send one typed line."""
        if not self.writer:
            return
        try:
            await write_message(self.writer, create_chat_message(text))
        except (ConnectionError, OSError) as e:
            logger.log_error("sending message", e)

    def send_text(self, text: str):
        """Send a line from the GUI thread."""
        if not self.loop_ready.wait(timeout=5.0):
            logger.warning("Event loop not ready, message not sent")
            return
        if self.loop and not self.loop.is_closed():
            asyncio.run_coroutine_threadsafe(self.send_text_async(text), self.loop)

    def stop(self):
        """Close the connection; the listen loop then ends."""
        if self.loop and not self.loop.is_closed() and self.loop.is_running():
            self.loop.call_soon_threadsafe(self._cancel_tasks)

    def _cancel_tasks(self):
        for task in asyncio.all_tasks(self.loop):
            task.cancel()


def main(server_host: str = DEFAULT_HOST, server_port: int = DEFAULT_PORT):
    """Run the GUI client."""
    app = QApplication(sys.argv)

    window = ClientMainWindow(server_host, server_port)
    window.show()
    window.connect_to_server()

    sys.exit(app.exec())


if __name__ == "__main__":
    main()
