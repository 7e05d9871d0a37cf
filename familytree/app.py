"""Main FamilyTree application."""

import logging
import sys
from pathlib import Path
from typing import Optional

import gi
gi.require_version("Gtk", "4.0")
gi.require_version("Adw", "1")
gi.require_version("Gdk", "4.0")
from gi.repository import Gtk, Gdk, Gio, GLib, Adw

from familytree import __version__, __app_id__
from familytree.canvas import FamilyTreeCanvas
from familytree.editor import Editor
from familytree.settings import EditorSettings
from familytree.snapshot import DEFAULT_FILENAME

logger = logging.getLogger(__name__)

HELP_TEXT = (
    "↘ Add children  |  Alt+Drag or Middle-click to pan  |  "
    "Ctrl+Wheel to zoom  |  Toggle full screen  |  Drag nodes to reposition"
)


class FamilyTreeWindow(Adw.ApplicationWindow):
    """Main application window."""

    def __init__(self, app: Adw.Application, settings: EditorSettings):
        super().__init__(application=app)
        self.settings = settings
        self.editor = Editor(settings)
        self.editor.on_notice = self._show_toast

        self.set_title("Family Tree Builder")
        self.set_default_size(settings.window_width, settings.window_height)

        self._load_css()
        self._build_ui()
        self._setup_shortcuts()

        self.connect("notify::fullscreened", self._on_fullscreen_changed)

    def _load_css(self):
        """Load custom CSS theme."""
        css_path = Path(__file__).parent / "theme.css"
        if css_path.exists():
            css_provider = Gtk.CssProvider()
            css_provider.load_from_path(str(css_path))
            Gtk.StyleContext.add_provider_for_display(
                Gdk.Display.get_default(),
                css_provider,
                Gtk.STYLE_PROVIDER_PRIORITY_APPLICATION
            )

    def _build_ui(self):
        """Build the main UI layout."""
        main_box = Gtk.Box(orientation=Gtk.Orientation.VERTICAL)
        main_box.append(self._build_header())

        # Canvas with floating controls in the corner
        self.canvas = FamilyTreeCanvas(self.editor, self.settings)
        self.canvas.on_zoom_changed = lambda _pct: self._update_zoom_label()

        canvas_frame = Gtk.Frame()
        canvas_frame.set_child(self.canvas)
        canvas_frame.add_css_class("canvas-container")

        overlay = Gtk.Overlay()
        overlay.set_child(canvas_frame)
        overlay.add_overlay(self._build_canvas_controls())
        overlay.set_vexpand(True)

        # Wrap in toast overlay for in-app notifications
        self.toast_overlay = Adw.ToastOverlay()
        self.toast_overlay.set_child(overlay)
        self.toast_overlay.set_vexpand(True)
        main_box.append(self.toast_overlay)

        help_label = Gtk.Label(label=HELP_TEXT)
        help_label.add_css_class("dim-label")
        help_label.add_css_class("help-footer")
        main_box.append(help_label)

        self.set_content(main_box)

    def _build_header(self) -> Adw.HeaderBar:
        """Build the header bar."""
        header = Adw.HeaderBar()
        header.set_title_widget(Gtk.Label(label="Family Tree Builder", css_classes=["title"]))

        # Zoom group: -  100%  +
        zoom_box = Gtk.Box(orientation=Gtk.Orientation.HORIZONTAL)
        zoom_box.add_css_class("linked")
        zoom_out_btn = Gtk.Button(icon_name="zoom-out-symbolic", tooltip_text="Zoom Out")
        zoom_out_btn.connect("clicked", lambda b: self._zoom_out())
        self.zoom_label = Gtk.Label(label="100%")
        self.zoom_label.set_width_chars(5)
        zoom_in_btn = Gtk.Button(icon_name="zoom-in-symbolic", tooltip_text="Zoom In")
        zoom_in_btn.connect("clicked", lambda b: self._zoom_in())
        zoom_box.append(zoom_out_btn)
        zoom_box.append(self.zoom_label)
        zoom_box.append(zoom_in_btn)
        header.pack_start(zoom_box)

        self.fullscreen_btn = Gtk.Button(icon_name="view-fullscreen-symbolic",
                                         tooltip_text="Full Screen")
        self.fullscreen_btn.connect("clicked", lambda b: self._toggle_fullscreen())
        header.pack_end(self.fullscreen_btn)

        reset_btn = Gtk.Button(label="Reset")
        reset_btn.add_css_class("destructive-action")
        reset_btn.connect("clicked", lambda b: self._reset())
        header.pack_end(reset_btn)

        save_btn = Gtk.Button(label="Save")
        save_btn.add_css_class("suggested-action")
        save_btn.connect("clicked", lambda b: self._save())
        header.pack_end(save_btn)

        load_btn = Gtk.Button(label="Load")
        load_btn.connect("clicked", lambda b: self._load())
        header.pack_end(load_btn)

        return header

    def _build_canvas_controls(self) -> Gtk.Widget:
        """Pan hint, zoom and full-screen buttons floating over the canvas."""
        box = Gtk.Box(orientation=Gtk.Orientation.VERTICAL)
        box.add_css_class("linked")
        box.add_css_class("canvas-controls")
        box.set_halign(Gtk.Align.END)
        box.set_valign(Gtk.Align.END)
        box.set_margin_end(24)
        box.set_margin_bottom(24)

        pan_btn = Gtk.Button(icon_name="view-pin-symbolic",
                             tooltip_text="Pan: Alt+Drag or middle-click")
        zoom_in_btn = Gtk.Button(icon_name="zoom-in-symbolic", tooltip_text="Zoom In")
        zoom_in_btn.connect("clicked", lambda b: self._zoom_in())
        zoom_out_btn = Gtk.Button(icon_name="zoom-out-symbolic", tooltip_text="Zoom Out")
        zoom_out_btn.connect("clicked", lambda b: self._zoom_out())
        self.overlay_fullscreen_btn = Gtk.Button(icon_name="view-fullscreen-symbolic",
                                                 tooltip_text="Full Screen")
        self.overlay_fullscreen_btn.connect("clicked", lambda b: self._toggle_fullscreen())

        for btn in (pan_btn, zoom_in_btn, zoom_out_btn, self.overlay_fullscreen_btn):
            box.append(btn)
        return box

    def _setup_shortcuts(self):
        """Setup keyboard shortcuts."""
        actions = [
            ("open", self._load, "<Control>o"),
            ("save", self._save, "<Control>s"),
            ("reset", self._reset, None),
            ("zoom-in", self._zoom_in, "<Control>plus"),
            ("zoom-out", self._zoom_out, "<Control>minus"),
            ("fullscreen", self._toggle_fullscreen, "F11"),
            ("show-about", self._show_about, None),
            ("quit", lambda: self.close(), "<Control>q"),
        ]

        for name, callback, accel in actions:
            action = Gio.SimpleAction.new(name, None)
            action.connect("activate", lambda a, p, cb=callback: cb())
            self.add_action(action)

            if accel:
                self.get_application().set_accels_for_action(f"win.{name}", [accel])

        self.get_application().set_accels_for_action("win.zoom-in", ["<Control>plus", "<Control>equal"])

    # ==================== View ====================

    def _update_zoom_label(self):
        self.zoom_label.set_label(f"{self.editor.viewport.zoom_percent}%")

    def _zoom_in(self):
        self.editor.zoom_in()
        self._update_zoom_label()

    def _zoom_out(self):
        self.editor.zoom_out()
        self._update_zoom_label()

    def _toggle_fullscreen(self):
        if self.is_fullscreen():
            self.unfullscreen()
        else:
            self.fullscreen()

    def _on_fullscreen_changed(self, window, _param):
        full = self.is_fullscreen()
        icon = "view-restore-symbolic" if full else "view-fullscreen-symbolic"
        tooltip = "Exit Full Screen" if full else "Full Screen"
        for btn in (self.fullscreen_btn, self.overlay_fullscreen_btn):
            btn.set_icon_name(icon)
            btn.set_tooltip_text(tooltip)

    def _reset(self):
        self.canvas.stop_editing()
        self.editor.reset()
        self._update_zoom_label()

    # ==================== Snapshots ====================

    def _json_filters(self) -> Gio.ListStore:
        filter_json = Gtk.FileFilter()
        filter_json.set_name("Family tree (JSON)")
        filter_json.add_pattern("*.json")
        filters = Gio.ListStore.new(Gtk.FileFilter)
        filters.append(filter_json)
        return filters

    def _load(self):
        """Pick a snapshot file and load it."""
        dialog = Gtk.FileDialog()
        dialog.set_title("Load Family Tree")
        dialog.set_filters(self._json_filters())
        dialog.open(self, None, self._on_load_response)

    def _on_load_response(self, dialog, result):
        try:
            file = dialog.open_finish(result)
        except GLib.Error:
            return  # User cancelled
        if not file:
            return
        filepath = file.get_path()
        if not filepath:
            self._show_toast("Load failed: selected location is not a local file")
            return
        self.canvas.stop_editing()
        self.editor.load_file(filepath)

    def _save(self):
        """Write the tree as a JSON snapshot."""
        dialog = Gtk.FileDialog()
        dialog.set_title("Save Family Tree")
        dialog.set_initial_name(DEFAULT_FILENAME)
        dialog.set_filters(self._json_filters())
        dialog.save(self, None, self._on_save_response)

    def _on_save_response(self, dialog, result):
        try:
            file = dialog.save_finish(result)
        except GLib.Error:
            return  # User cancelled
        if not file:
            return
        filepath = file.get_path()
        if not filepath:
            self._show_toast("Save failed: selected location is not a local file")
            return
        if self.editor.save_file(filepath):
            self._show_toast(f"Saved to {filepath}")

    def _show_about(self):
        """Show about dialog."""
        about = Adw.AboutWindow(
            transient_for=self,
            application_name="Family Tree Builder",
            application_icon="applications-graphics",
            version=__version__,
            license_type=Gtk.License.MIT_X11,
            comments="Grow a family tree by dragging from each person",
        )
        about.present()

    def _show_toast(self, message: str):
        """Show a toast notification."""
        toast = Adw.Toast(title=message)
        toast.set_timeout(3)
        self.toast_overlay.add_toast(toast)


class FamilyTreeApp(Adw.Application):
    """Main application class."""

    def __init__(self):
        super().__init__(
            application_id=__app_id__,
            flags=Gio.ApplicationFlags.DEFAULT_FLAGS
        )
        self.settings: Optional[EditorSettings] = None
        self.window: Optional[FamilyTreeWindow] = None

    def do_startup(self):
        """Initialize application."""
        Adw.Application.do_startup(self)
        self.settings = EditorSettings.load()

    def do_activate(self):
        """Activate application."""
        if not self.window:
            self.window = FamilyTreeWindow(self, self.settings)
        self.window.present()


def main() -> int:
    """Application entry point."""
    app = FamilyTreeApp()
    return app.run(sys.argv)


if __name__ == "__main__":
    sys.exit(main())
