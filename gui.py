#!/usr/bin/env python3
"""
gui.py — Weather forecast widget

Features included:
- Fixed-size frameless window, drag with the left mouse button, right-click menu to quit
- City search box (button or Enter) resolved through the bundled city code table
- Today card (date, city, temperature range, condition + icon, advisory, wind, PM2.5,
  humidity, colored air-quality badge)
- 6-day strip (today/tomorrow/day-after labels, date, icon, condition, air quality, wind)
- High / low temperature trend charts embedded with matplotlib
- Network calls on a background thread so the UI stays responsive
"""

from __future__ import annotations

import os
import sys
import logging
import datetime
from typing import Dict, List, Optional

import tkinter as tk
from tkinter import ttk, messagebox
from PIL import Image, ImageTk
from matplotlib.figure import Figure
from matplotlib.backends.backend_tkagg import FigureCanvasTkAgg

from city_codes import CityCodeResolver
from forecast_controller import ForecastController
from trend import HIGH_COLOR, LOW_COLOR, Point, build_trend_curve, draw_trend_curve
from weather_fetcher import NetworkError, WeatherError
from weather_model import (
    DAYS_SHOWN,
    Forecast,
    WeatherRecord,
    air_quality_color,
    icon_path,
    parse_condition,
    short_date,
    week_label,
)

logger = logging.getLogger(__name__)

WINDOW_SIZE = (550, 990)
CHART_HEIGHT = 90
COLORS = {"bg": "#2b3a55", "card": "#3b4d6e", "fg": "#ffffff", "muted": "#c8d3e6"}
FONT = "Microsoft YaHei"


# ----------------- helpers -----------------
def load_icon(icon_key: str, size: int) -> Optional[ImageTk.PhotoImage]:
    """Open the bundled icon for a condition; None when no image can be read."""
    path = icon_path(icon_key)
    try:
        img = Image.open(path).resize((size, size), Image.LANCZOS)
        return ImageTk.PhotoImage(img)
    except OSError:
        logger.debug("No icon image at %s", path)
        return None


# ----------------- Main App -----------------
class WeatherApp(tk.Tk):
    def __init__(self):
        super().__init__()
        self.title("天气预报")
        self.geometry("{}x{}".format(*WINDOW_SIZE))
        self.resizable(False, False)
        self.overrideredirect(True)
        self.configure(bg=COLORS["bg"])
        self.colors = COLORS

        # state
        self._drag_offset = (0, 0)
        self._icons: Dict[str, ImageTk.PhotoImage] = {}
        self.controller = ForecastController(
            CityCodeResolver(),
            deliver=lambda fn: self.after(0, fn),
            on_forecast=self._update_ui,
            on_error=self._handle_error,
            on_status=self._set_status,
        )

        # build UI
        self._build_ui()
        self._build_menu()

        # window dragging
        self.bind("<ButtonPress-1>", self._on_drag_start)
        self.bind("<B1-Motion>", self._on_drag_move)

        # first fetch without a city code, the API picks the location
        self.after(200, self.controller.refresh)

    # ---------- UI builders ----------
    def _label(self, parent, text="", size=11, bold=False, fg=None, bg=None, **kw) -> tk.Label:
        return tk.Label(parent, text=text, bg=bg or self.colors["card"], fg=fg or self.colors["fg"],
                        font=(FONT, size, "bold" if bold else "normal"), **kw)

    def _build_ui(self):
        # search bar
        controls = tk.Frame(self, bg=self.colors["bg"])
        controls.pack(fill="x", padx=16, pady=(14, 8))

        self.city_var = tk.StringVar()
        self.city_entry = ttk.Entry(controls, textvariable=self.city_var, width=30, font=(FONT, 11))
        self.city_entry.pack(side="left", padx=(0, 6))
        self.city_entry.bind("<Return>", lambda e: self.search())
        # frameless windows do not get keyboard focus from the window manager
        self.city_entry.bind("<Button-1>", lambda e: self.city_entry.focus_force())

        self.search_btn = ttk.Button(controls, text="搜索", command=self.search)
        self.search_btn.pack(side="left")

        # today card
        self.card = tk.Frame(self, bg=self.colors["card"])
        self.card.pack(padx=16, pady=8, fill="x")

        self.date_label = self._label(self.card, "—", size=11)
        self.date_label.grid(row=0, column=0, columnspan=2, sticky="w", padx=12, pady=(10, 2))
        self.city_label = self._label(self.card, "—", size=16, bold=True)
        self.city_label.grid(row=1, column=0, columnspan=2, sticky="w", padx=12)

        self.temp_label = self._label(self.card, "—", size=36, bold=True)
        self.temp_label.grid(row=2, column=0, sticky="w", padx=12)
        self.icon_label = tk.Label(self.card, bg=self.colors["card"])
        self.icon_label.grid(row=2, column=1, rowspan=2, padx=12)

        self.range_label = self._label(self.card, "", size=11)
        self.range_label.grid(row=3, column=0, sticky="w", padx=12)
        self.desc_label = self._label(self.card, "—", size=13)
        self.desc_label.grid(row=4, column=0, sticky="w", padx=12, pady=2)

        self.tips_label = self._label(self.card, "", size=10, fg=self.colors["muted"], wraplength=480, justify="left")
        self.tips_label.grid(row=5, column=0, columnspan=2, sticky="w", padx=12, pady=(4, 8))

        details = tk.Frame(self.card, bg=self.colors["card"])
        details.grid(row=6, column=0, columnspan=2, sticky="we", padx=12, pady=(0, 12))
        self.detail_labels: Dict[str, tk.Label] = {}
        for col, (key, title) in enumerate((("wind", "风向"), ("pm25", "PM2.5"),
                                            ("humidity", "湿度"), ("air", "空气质量"))):
            box = tk.Frame(details, bg=self.colors["card"])
            box.grid(row=0, column=col, padx=10)
            self._label(box, title, size=9, fg=self.colors["muted"]).pack()
            self.detail_labels[key] = self._label(box, "—", size=11, bold=True)
            self.detail_labels[key].pack()

        # 6-day strip
        self.strip = tk.Frame(self, bg=self.colors["card"])
        self.strip.pack(padx=16, pady=8, fill="x")
        self.day_cells: List[Dict[str, tk.Label]] = []
        for i in range(DAYS_SHOWN):
            self.strip.columnconfigure(i, weight=1, uniform="day")
            col = tk.Frame(self.strip, bg=self.colors["card"])
            col.grid(row=0, column=i, sticky="n", pady=8)
            cell = {
                "week": self._label(col, "—", size=10, bold=True),
                "date": self._label(col, "", size=9, fg=self.colors["muted"]),
                "icon": tk.Label(col, bg=self.colors["card"]),
                "type": self._label(col, "", size=9),
                "air": self._label(col, "", size=9, padx=6),
                "wind": self._label(col, "", size=9),
                "level": self._label(col, "", size=9, fg=self.colors["muted"]),
            }
            for w in cell.values():
                w.pack(pady=1)
            self.day_cells.append(cell)

        # trend charts share the strip's width so the points line up with the days
        self.charts = {}
        for key, color in (("high", HIGH_COLOR), ("low", LOW_COLOR)):
            frame = tk.Frame(self, bg=self.colors["card"], height=CHART_HEIGHT)
            frame.pack(padx=16, pady=(8, 0), fill="x")
            fig = Figure(figsize=(5.18, CHART_HEIGHT / 100), dpi=100, facecolor=self.colors["card"])
            ax = fig.add_axes([0, 0, 1, 1])
            ax.axis("off")
            canvas = FigureCanvasTkAgg(fig, master=frame)
            canvas.get_tk_widget().configure(bg=self.colors["card"], highlightthickness=0)
            canvas.get_tk_widget().pack(fill="both", expand=True)
            canvas.get_tk_widget().bind("<Configure>", lambda e: self._redraw_charts(), add="+")
            self.charts[key] = (ax, canvas, color)

        # status
        self.status = tk.Label(self, text="就绪", bg=self.colors["bg"], fg=self.colors["muted"])
        self.status.pack(side="bottom", pady=(6, 12))

    def _build_menu(self):
        self.menu = tk.Menu(self, tearoff=0)
        self.menu.add_command(label="退出", command=self._on_close)
        self.bind("<Button-3>", lambda e: self.menu.tk_popup(e.x_root, e.y_root))

    # ---------- window dragging ----------
    def _on_drag_start(self, event):
        if isinstance(event.widget, (ttk.Entry, ttk.Button)):
            self._drag_offset = None
            return
        self._drag_offset = (event.x_root - self.winfo_x(), event.y_root - self.winfo_y())

    def _on_drag_move(self, event):
        if self._drag_offset is None:
            return
        dx, dy = self._drag_offset
        self.geometry(f"+{event.x_root - dx}+{event.y_root - dy}")

    # ---------- actions ----------
    def search(self):
        self.controller.submit(self.city_var.get())

    def _set_status(self, text: str):
        self.status.configure(text=text)

    def _handle_error(self, e: WeatherError):
        if isinstance(e, NetworkError):
            messagebox.showerror("错误", "网络请求失败", parent=self)
        else:
            messagebox.showerror("错误", str(e), parent=self)
        self.status.configure(text="出错")

    # ---------------- UI updater ----------------
    def _icon(self, icon_key: str, size: int) -> Optional[ImageTk.PhotoImage]:
        cache_key = f"{icon_key}@{size}"
        if cache_key not in self._icons:
            img = load_icon(icon_key, size)
            if img is None:
                return None
            self._icons[cache_key] = img
        return self._icons[cache_key]

    def _style_air_badge(self, label: tk.Label, level: str):
        color = air_quality_color(level)
        label.configure(text=level, bg=color or self.colors["card"])

    def _update_ui(self, forecast: Forecast):
        today = forecast.today
        cond = parse_condition(today.condition)

        self.date_label.config(text=f"{today.date}  {today.week}")
        self.city_label.config(text=f"{today.city}市" if today.city else "—")
        self.temp_label.config(text=f"{today.temp_current}℃")
        self.range_label.config(text=f"{today.temp_low}℃~{today.temp_high}℃")
        self.desc_label.config(text=cond.display_text)
        self.tips_label.config(text=today.advisory)
        self.icon_label.configure(image=self._icon(cond.icon_key, 128) or "")

        self.detail_labels["wind"].config(text=f"{today.wind_direction} {today.wind_level}".strip())
        self.detail_labels["pm25"].config(text=today.pm25)
        self.detail_labels["humidity"].config(text=today.humidity)
        self._style_air_badge(self.detail_labels["air"], today.air_quality)

        for i, (cell, record) in enumerate(zip(self.day_cells, forecast)):
            self._update_day_cell(i, cell, record)

        # badge positions are only known once the new labels are laid out
        self.update_idletasks()
        self._redraw_charts()
        self.status.config(text=f"更新于 {datetime.datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")

    def _update_day_cell(self, index: int, cell: Dict[str, tk.Label], record: WeatherRecord):
        cond = parse_condition(record.condition)
        cell["week"].config(text=week_label(index, record))
        cell["date"].config(text=short_date(record))
        cell["icon"].configure(image=self._icon(cond.icon_key, 48) or "")
        cell["type"].config(text=cond.display_text)
        self._style_air_badge(cell["air"], record.air_quality)
        cell["wind"].config(text=record.wind_direction)
        cell["level"].config(text=record.wind_level)

    def _chart_anchors(self) -> List[Point]:
        # horizontal centers of the air-quality badges, relative to the strip
        anchors = []
        for cell in self.day_cells:
            badge = cell["air"]
            col = badge.master
            anchors.append(Point(col.winfo_x() + badge.winfo_x() + badge.winfo_width() // 2, 0))
        return anchors

    def _redraw_charts(self):
        forecast = self.controller.forecast
        if forecast is None:
            return
        anchors = self._chart_anchors()
        for key, (ax, canvas, color) in self.charts.items():
            widget = canvas.get_tk_widget()
            width, height = widget.winfo_width(), widget.winfo_height()
            texts = [r.temp_high if key == "high" else r.temp_low for r in forecast]
            curve = build_trend_curve(texts, anchors, height, color)
            draw_trend_curve(ax, curve, width, height)
            canvas.draw_idle()

    # ---------------- exit ----------------
    def _on_close(self):
        try:
            self.destroy()
        finally:
            sys.exit(0)


def main():
    logging.basicConfig(
        level=os.getenv("WEATHER_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = WeatherApp()
    app.mainloop()


# ---------------- run ----------------
if __name__ == "__main__":
    main()
