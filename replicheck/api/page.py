"""The single demo page. Talks only to the JSON endpoints under ``/api``."""

from __future__ import annotations

from typing import Final

INDEX_HTML: Final = """<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <title>PostgreSQL Replication Demo</title>
  <style>
    body { font-family: Arial, sans-serif; max-width: 1400px; margin: 0 auto; padding: 20px; }
    .panel { margin-bottom: 20px; padding: 15px; background: #f8f9fa; border-radius: 5px; }
    .buttons { display: flex; gap: 10px; margin-top: 10px; }
    .columns { display: flex; gap: 20px; }
    .db { flex: 1; border: 1px solid #ddd; padding: 15px; border-radius: 5px; }
    .db h2 { margin-top: 0; }
    input, button { padding: 8px; margin: 5px 0; }
    button { background: #007bff; color: white; border: none; cursor: pointer; border-radius: 3px; }
    button.write-ok { background: #28a745; }
    button.write-fail { background: #dc3545; }
    .chats { max-height: 400px; overflow-y: auto; margin-top: 10px; }
    .chat { background: #fff; padding: 10px; margin: 5px 0; border-radius: 3px; }
    .ok { color: green; font-weight: bold; }
    .bad { color: red; font-weight: bold; }
  </style>
</head>
<body>
  <h1>PostgreSQL Streaming Replication Demo</h1>
  <p>Write to the master, the read-only replica, or through the PgCat proxy, then compare what each one sees.</p>

  <div class="panel">
    <h3>Add New Chat Message</h3>
    <input type="text" id="message" placeholder="Enter message" style="width: 400px;">
    <div class="buttons">
      <button class="write-ok" onclick="addChat('master')">Add to Master (should work)</button>
      <button class="write-fail" onclick="addChat('replica')">Add to Replica (should fail)</button>
      <button onclick="addChat('pgcat')">Add via PgCat</button>
    </div>
    <div id="result"></div>
  </div>

  <div class="columns">
    <div class="db"><h2>Master</h2><button onclick="loadChats('master')">Refresh</button><div id="master-chats" class="chats"></div></div>
    <div class="db"><h2>Replica</h2><button onclick="loadChats('replica')">Refresh</button><div id="replica-chats" class="chats"></div></div>
    <div class="db"><h2>PgCat</h2><button onclick="loadChats('pgcat')">Refresh</button><div id="pgcat-chats" class="chats"></div></div>
  </div>

  <div class="panel">
    <h3>Replication Status</h3>
    <button onclick="compareDBs()">Compare Databases</button>
    <div id="comparison"></div>
  </div>

  <script>
    const TARGETS = ['master', 'replica', 'pgcat'];

    function line(cls, text) {
      const p = document.createElement('p');
      p.className = cls;
      p.textContent = text;
      return p;
    }

    async function addChat(target) {
      const input = document.getElementById('message');
      const result = document.getElementById('result');
      if (!input.value) { alert('Please enter a message'); return; }
      result.replaceChildren(line('', 'Processing...'));
      try {
        const res = await fetch('/api/chats', {
          method: 'POST',
          headers: {'Content-Type': 'application/json'},
          body: JSON.stringify({message: input.value, target: target}),
        });
        const data = await res.json();
        if (res.ok) {
          result.replaceChildren(line('ok', 'Added #' + data.id + ' to ' + target));
          input.value = '';
          setTimeout(() => TARGETS.forEach(loadChats), 100);
        } else {
          result.replaceChildren(line('bad', 'Error: ' + data.error));
        }
      } catch (err) {
        result.replaceChildren(line('bad', 'Network error: ' + err.message));
      }
    }

    async function loadChats(db) {
      const container = document.getElementById(db + '-chats');
      const res = await fetch('/api/chats?db=' + db);
      const data = await res.json();
      if (!res.ok) { container.replaceChildren(line('bad', data.error)); return; }
      if (data.length === 0) { container.replaceChildren(line('chat', 'No messages yet')); return; }
      container.replaceChildren(...data.map(c => {
        const item = document.createElement('div');
        item.className = 'chat';
        item.textContent = '#' + c.id + ': ' + c.message + ' (' + new Date(c.created_at).toLocaleString() + ')';
        return item;
      }));
    }

    async function compareDBs() {
      const res = await fetch('/api/compare');
      const data = await res.json();
      document.getElementById('comparison').replaceChildren(
        line(data.match ? 'ok' : 'bad', data.match ? 'All databases are in sync' : 'Databases are NOT in sync'),
        line('', 'Master: ' + data.count1 + ' | Replica: ' + data.count2 + ' | PgCat: ' + data.count3 + ' records'),
      );
    }

    TARGETS.forEach(loadChats);
    compareDBs();
  </script>
</body>
</html>
"""
