"""
chroma_key_gui.py

Tkinter GUI for the dominant-color Chroma Key Compositor

Author: Anelia Gaydardzhieva (https://github.com/anphiriel)
(c) 2025, MIT License

GUI layer for demonstrating the compositor using Tkinter. The key color is found
automatically from the foreground; the user only drives the tolerance slider.
It references chroma_key_core for the compositing and chroma_key_io for file access
"""

import logging
import tkinter as tk
from pathlib import Path
from tkinter import filedialog, messagebox
import tkinter.ttk as ttk

import cv2
from PIL import Image, ImageTk

import chroma_key_config as config
from chroma_key_core import ChromaKeySession, report_key_color
from chroma_key_io import fit_to_display, load_image, save_image

logger = logging.getLogger(__name__)

IMAGE_FILETYPES = [("Image files", "*.jpg *.jpeg *.png *.bmp *.tif *.tiff *.webp"), ("All files", "*.*")]
QUIT_KEYS = {"Escape", "q", "Q", "space"}


class ToolTip:
    """
    A simple tooltip that appears on widget hover
    """
    def __init__(self, widget, text):
        self.widget = widget
        self.text = text
        self.tip_window = None

        widget.bind("<Enter>", self._show_tooltip)
        widget.bind("<Leave>", self._hide_tooltip)

    def _show_tooltip(self, event=None):
        if self.tip_window or not self.text:
            return
        x = self.widget.winfo_rootx() + 40
        y = self.widget.winfo_rooty() + 20
        self.tip_window = tw = tk.Toplevel(self.widget)
        tw.wm_overrideredirect(True)
        tw.geometry(f"+{x}+{y}")
        label = ttk.Label(tw, text=self.text, borderwidth=1, relief="solid")
        label.configure(background="#333333", foreground="#ffffff")
        label.pack(ipadx=5, ipady=2)

    def _hide_tooltip(self, event=None):
        if self.tip_window:
            self.tip_window.destroy()
        self.tip_window = None


class ChromaKeyApp:
    """
    A Tkinter-based demonstration of automatic (most common color) chroma keying
    """

    def __init__(self):
        self.root = tk.Tk()
        self.root.title("Chroma Key Compositor")
        self.root.geometry("1050x550")

        # source images (BGR arrays) and where they came from
        self.fg_path = None
        self.fg_image = None
        self.bg_path = None
        self.bg_image = None

        # derived once per foreground/background pair
        self.session = None
        self.tolerance = 0
        self.result = None
        self.overlay_path = Path(config.OVERLAY_PATH)

        self._setup_ui()
        self._load_default_sources()

        self.root.bind("<Key>", self._on_key)
        self.root.protocol("WM_DELETE_WINDOW", self.close)
        self.root.mainloop()

    # --------------------------------------------------
    # Setup UI
    # --------------------------------------------------
    def _setup_ui(self):
        """
        Builds the user interface, organizing frames and controls
        """
        style = ttk.Style(self.root)
        style.theme_use("clam")

        style.configure("TFrame", background="#404040")
        style.configure("TLabel", background="#404040", foreground="#ffffff")
        style.configure("TLabelframe", background="#404040", foreground="#cccccc", borderwidth=1, relief="solid")
        style.configure("TLabelframe.Label", background="#404040", foreground="#cccccc")
        style.configure("TButton", background="#777777", foreground="#ffffff", borderwidth=1, relief="solid")
        style.map("TButton", background=[("active", "#666666"), ("pressed", "#666666")])
        style.configure("TScale", background="#404040")
        style.configure("Horizontal.TScale", troughcolor="#333333")
        style.configure("TinyInfo.TLabel", font=("Helvetica", 11, "bold"), foreground="#999999", padding=1)

        main_frame = ttk.Frame(self.root, padding=5)
        main_frame.pack(fill="both", expand=True)

        left_panel = ttk.Frame(main_frame)
        left_panel.pack(side="left", fill="y")

        right_panel = ttk.Frame(main_frame)
        right_panel.pack(side="right", fill="both", expand=True)

        top_frame = ttk.Labelframe(left_panel, text="Source Setup")
        top_frame.pack(side="top", fill="x", padx=10, pady=10)

        self.create_button_with_info(parent=top_frame, text="Load Foreground", command=self.load_foreground, row=0, tooltip_text="Choose the image whose most common color will be keyed out")
        self.create_button_with_info(parent=top_frame, text="Load Background", command=self.load_background, row=1, tooltip_text="Choose the image shown through the keyed-out areas (tiled if smaller)")

        # detected key color
        key_frame = ttk.Labelframe(left_panel, text="Detected Key Color")
        key_frame.pack(side="top", fill="x", padx=10, pady=10)
        self.key_swatch = tk.Label(key_frame, width=4, background="#000000", relief="solid", borderwidth=1)
        self.key_swatch.grid(row=0, column=0, padx=(5, 5), pady=5)
        self.key_label = ttk.Label(key_frame, text="Load both images")
        self.key_label.grid(row=0, column=1, sticky="w", padx=5)
        self.count_label = ttk.Label(key_frame, text="")
        self.count_label.grid(row=1, column=0, columnspan=2, sticky="w", padx=5, pady=(0, 5))

        # chroma key settings
        settings_frame = ttk.Labelframe(left_panel, text="Chroma Key Settings")
        settings_frame.pack(side="top", fill="x", padx=10, pady=10)
        self.tolerance_scale, self.tolerance_value_lbl = self.create_slider_with_info(
            settings_frame, "Tolerance", self.tolerance, self.update_tolerance, 0, 255,
            "Largest per-channel difference from the key color that still counts as a match")

        # right side: preview
        preview_frame = ttk.Frame(right_panel)
        preview_frame.pack(side="top", fill="both", expand=True, padx=20, pady=(15, 15))

        self.preview_label = ttk.Label(preview_frame, text="Preview", anchor="center", background="#000000", foreground="#ffffff")
        self.preview_label.pack(fill="both", expand=True)
        self.preview_label.bind("<Configure>", lambda event: self.refresh_preview())

        bottom_frame = ttk.Frame(right_panel)
        bottom_frame.pack(side="bottom", fill="x", padx=10, pady=10)
        actions_frame = ttk.Frame(bottom_frame)
        actions_frame.pack(side="right")

        self.create_button_with_info(parent=actions_frame, text="Save Overlay As...", command=self.save_overlay_as, row=0, col=0, tooltip_text=f"Write the composited image somewhere other than {self.overlay_path}")

    # ----------------------------------------------------------------------
    # Element builders - buttons and sliders
    # ----------------------------------------------------------------------
    def create_button_with_info(self, parent, text, command, row=0, col=0, tooltip_text=""):
        btn = ttk.Button(parent, text=text, command=command)
        btn.grid(row=row, column=col, pady=(5, 5), padx=(5,0), sticky="ew")

        info_lbl = ttk.Label(parent, text="?", style="TinyInfo.TLabel")
        info_lbl.grid(row=row, column=col+1, sticky="w", padx=5)
        ToolTip(info_lbl, tooltip_text)

    def create_slider_with_info(self, parent, label_text, default_value, command, min_val, max_val, tooltip_text):
        row_frame = ttk.Frame(parent)
        row_frame.pack(fill="x", pady=5)

        row_frame.columnconfigure(0, minsize=85)
        row_frame.columnconfigure(1, weight=1)
        row_frame.columnconfigure(2, minsize=37)
        row_frame.columnconfigure(3, minsize=10)

        lbl = ttk.Label(row_frame, text=label_text)
        lbl.grid(row=0, column=0, padx=(5,5), sticky="w")

        value_lbl = ttk.Label(row_frame, text=str(default_value))
        value_lbl.grid(row=0, column=2, padx=(5,5), sticky="w")

        def slider_callback(val):
            value_lbl.config(text=f"{int(float(val))}")
            command(val)

        scale = ttk.Scale(row_frame, from_=min_val, to=max_val, orient="horizontal", command=slider_callback, length=180)
        scale.set(default_value)
        scale.grid(row=0, column=1, sticky="e", padx=(0,5))

        info_lbl = ttk.Label(row_frame, text="?", style="TinyInfo.TLabel")
        info_lbl.grid(row=0, column=3, sticky="w", padx=(0,5))
        ToolTip(info_lbl, tooltip_text)
        return scale, value_lbl

    # -------------------------------------------------
    # Source loading
    # -------------------------------------------------
    def _load_default_sources(self):
        fg_path = Path(config.FOREGROUND_PATH)
        bg_path = Path(config.BACKGROUND_PATH)
        if fg_path.is_file() and bg_path.is_file():
            self._load_source("fg", fg_path)
            self._load_source("bg", bg_path)

    def load_foreground(self):
        path = filedialog.askopenfilename(filetypes=IMAGE_FILETYPES, title="Select Foreground Image")
        if path:
            self._load_source("fg", path)

    def load_background(self):
        path = filedialog.askopenfilename(filetypes=IMAGE_FILETYPES, title="Select Background Image")
        if path:
            self._load_source("bg", path)

    def _load_source(self, which, path):
        try:
            pixels = load_image(path)
        except FileNotFoundError as err:
            logger.error("%s", err)
            messagebox.showerror("Error", str(err))
            return

        if which == "fg":
            self.fg_path, self.fg_image = Path(path), pixels
        else:
            self.bg_path, self.bg_image = Path(path), pixels
        logger.info("Loaded %s image %s", "foreground" if which == "fg" else "background", path)
        self._rebuild_session()

    def _rebuild_session(self):
        """
        Finds the key color once both images are present and resets the tolerance slider
        """
        if self.fg_image is None or self.bg_image is None:
            return

        self.session = ChromaKeySession.from_images(self.fg_image, self.bg_image, config.BUCKETS)
        report_key_color(self.session)

        b, g, r = self.session.key_color
        self.key_swatch.config(background=f"#{r:02x}{g:02x}{b:02x}")
        self.key_label.config(text=f"B={b}, G={g}, R={r}  (bin {list(self.session.bin_index)})")
        self.count_label.config(text=f"Pixel count: {self.session.pixel_count}")

        self.tolerance_scale.config(to=self.session.max_tolerance)
        self.tolerance_scale.set(self.session.default_tolerance)
        self.update_tolerance(self.session.default_tolerance)

    # -------------------------------------------------
    # Slider callback
    # -------------------------------------------------
    def update_tolerance(self, val):
        if self.session is None:
            return
        self.tolerance = self.session.clamp_tolerance(float(val))
        self.tolerance_value_lbl.config(text=str(self.tolerance))
        self.result = self.session.set_tolerance(self.tolerance)
        self.refresh_preview()
        self._write_overlay(self.overlay_path)

    # -------------------------------------------------
    # Preview
    # -------------------------------------------------
    def refresh_preview(self):
        if self.result is not None:
            self.display_frame(fit_to_display(self.result, config.DISPLAY_MAX_SIDE))

    def display_frame(self, frame):
        w = self.preview_label.winfo_width()
        h = self.preview_label.winfo_height()
        if w < 2 or h < 2 or frame.size == 0:
            return

        fh, fw = frame.shape[:2]
        scale = min(w / fw, h / fh, 1.0)
        nw = max(1, int(fw * scale))
        nh = max(1, int(fh * scale))

        resized = cv2.resize(frame, (nw, nh), interpolation=cv2.INTER_AREA)
        rgb = cv2.cvtColor(resized, cv2.COLOR_BGR2RGB)
        img = ImageTk.PhotoImage(Image.fromarray(rgb))
        self.preview_label.config(image=img, text="")
        self.preview_label.image = img

    # -------------------------------------------------
    # Saving and shutdown
    # -------------------------------------------------
    def _write_overlay(self, path):
        try:
            save_image(path, self.result)
        except OSError as err:
            logger.error("%s", err)
            return False
        return True

    def save_overlay_as(self):
        if self.result is None:
            messagebox.showerror("Error", "Load a foreground and a background image first.")
            return
        out_path = filedialog.asksaveasfilename(defaultextension=".jpg", filetypes=[("JPEG Image", "*.jpg"), ("PNG Image", "*.png")], title="Save Overlay As...")
        if not out_path:
            return
        if self._write_overlay(out_path):
            logger.info("Overlay saved to %s", out_path)
            messagebox.showinfo("Success", f"Overlay saved to {out_path}.")
        else:
            messagebox.showerror("Error", f"Could not write {out_path}.")

    def _on_key(self, event):
        if event.keysym in QUIT_KEYS:
            self.close()

    def close(self):
        if self.result is not None and self._write_overlay(self.overlay_path):
            logger.info("Overlay saved to %s", self.overlay_path)
        self.root.destroy()


def main():
    config.configure_logging()
    ChromaKeyApp()


# -----------------------------
# Main
# -----------------------------
if __name__ == "__main__":
    main()
