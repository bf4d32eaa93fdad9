from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import HTMLResponse

from hyperlog.core.config import load_config

router = APIRouter()

PAGE_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8" />
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>hyperlog</title>
<style>
body { font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, Arial, sans-serif;
       background: #2f394a; color: #8690a7; margin: 0; }
header { position: fixed; top: 0; left: 0; width: 100%; background: #fff; z-index: 1; }
#files { list-style: none; margin: 0; padding: 0; display: flex; }
#files li { flex-grow: 1; border-bottom: 2px solid transparent; }
#files li.active { border-bottom-color: #5755d9; }
#files a { display: block; padding: 12px 16px; text-align: center; color: #262e3a; text-decoration: none; cursor: pointer; }
#files li.active a { color: #5755d9; }
main { margin-top: 45px; padding: 12px 0; }
table { width: 100%; border-collapse: collapse; }
td { padding: 4px 8px; vertical-align: top; font-family: "Roboto Mono", "SF Mono", Monaco, monospace; font-size: 14px; }
tr.line:hover { background: #354053; color: #e1e7ec; }
tr.error, tr.critical, tr.emergency, tr.alert { color: #ef5753; }
tr.warning { color: #faad63; }
td.level { text-align: center; }
td.has-trace { cursor: pointer; padding-left: 32px; position: relative; }
td.has-trace:before { content: '\\21E3'; position: absolute; left: 12px; }
td.has-trace.open:before { content: '\\21E1'; }
tr.trace td.text { padding-left: 48px; }
#status { padding: 4px 8px; }
</style>
</head>
<body>
<header><ul id="files"><li class="active"><a>Loading...</a></li></ul></header>
<main>
<div id="status"></div>
<table><tbody id="log"></tbody></table>
</main>
<script>
(() => {
  const dirPollMs = __DIR_POLL_MS__;
  const logPollMs = __LOG_POLL_MS__;
  const state = { file: null, start: null, files: [] };
  let log = null;
  const expanded = new Set();

  const getJson = (url) => fetch(url, { headers: { Accept: "application/json" } }).then((res) =>
    res.ok ? res.json() : res.json().then((body) => Promise.reject(new Error(body.detail || res.statusText))));

  const cell = (cls, text) => {
    const td = document.createElement("td");
    td.className = cls;
    td.textContent = text;
    return td;
  };

  const row = (entry, cls, hasLevels, level) => {
    const tr = document.createElement("tr");
    tr.className = cls;
    tr.appendChild(cell("number", entry.number));
    if (hasLevels) tr.appendChild(cell("level", level));
    if (log.has_stamps) tr.appendChild(cell("stamp", entry.timestamp));
    return tr;
  };

  const renderLog = () => {
    const body = document.getElementById("log");
    body.textContent = "";
    if (!log) return;
    for (const entry of Object.values(log.entries)) {
      const open = expanded.has(entry.number);
      const tr = row(entry, `line ${entry.level}`, log.has_levels, entry.level);
      const text = cell("text", entry.text);
      if (entry.trace.length > 0) {
        text.classList.add("has-trace");
        if (open) text.classList.add("open");
        text.onclick = () => {
          open ? expanded.delete(entry.number) : expanded.add(entry.number);
          renderLog();
        };
      }
      tr.appendChild(text);
      body.appendChild(tr);
      if (!open) continue;
      for (const traceLine of entry.trace) {
        const ttr = row(traceLine, "line trace", log.has_levels, "");
        ttr.appendChild(cell("text", traceLine.text));
        body.appendChild(ttr);
      }
    }
  };

  const renderTabs = () => {
    const list = document.getElementById("files");
    list.textContent = "";
    if (state.files.length === 0) {
      const li = document.createElement("li");
      li.appendChild(document.createElement("a")).textContent = "No logs found";
      list.appendChild(li);
      return;
    }
    for (const name of state.files) {
      const li = document.createElement("li");
      if (name === state.file) li.className = "active";
      const a = document.createElement("a");
      a.textContent = name;
      a.onclick = () => select(name);
      li.appendChild(a);
      list.appendChild(li);
    }
  };

  const updateHash = () => {
    let hash = "#/";
    if (state.file) hash += encodeURIComponent(state.file);
    if (state.file && state.start) hash += `/${state.start}`;
    history.replaceState(null, "", hash);
  };

  const fetchLog = () => {
    if (!state.file) return;
    const params = new URLSearchParams({ file: state.file });
    if (state.start) params.set("start", state.start);
    return getJson(`api/log?${params}`)
      .then((data) => {
        if (data.file !== state.file) return;
        log = data;
        document.getElementById("status").textContent = `${data.file} (${data.dialect}) lines ${data.start}-${data.end}`;
        renderLog();
        const last = document.querySelector("tr.line:last-child");
        if (last && !state.start) scrollTo(0, last.offsetTop);
      })
      .catch((err) => { document.getElementById("status").textContent = `error: ${err.message}`; });
  };

  const fetchFiles = () => getJson("api/files").then((data) => {
    state.files = data.files;
    if (state.file && !state.files.includes(state.file)) state.file = null;
    if (!state.file && state.files.length > 0) {
      select(state.files[0]);
      return;
    }
    renderTabs();
  });

  const select = (name, start = null) => {
    state.file = name;
    state.start = start;
    log = null;
    expanded.clear();
    document.title = `${name} - hyperlog`;
    updateHash();
    renderTabs();
    fetchLog();
  };

  const parts = location.hash.split("/");
  if (parts.length > 1 && parts[1]) select(decodeURIComponent(parts[1]), parseInt(parts[2], 10) || null);
  fetchFiles();
  setInterval(fetchFiles, dirPollMs);
  setInterval(fetchLog, logPollMs);
})();
</script>
</body>
</html>
"""


def render_page(dir_poll_ms: int, log_poll_ms: int) -> str:
    return (
        PAGE_TEMPLATE
        .replace("__DIR_POLL_MS__", str(int(dir_poll_ms)))
        .replace("__LOG_POLL_MS__", str(int(log_poll_ms)))
    )


@router.get("/", response_class=HTMLResponse)
@router.get("/view", response_class=HTMLResponse)
def index():
    cfg = load_config()
    return HTMLResponse(render_page(cfg.viewer.dir_poll_ms, cfg.viewer.log_poll_ms))
