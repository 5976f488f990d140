# submit_server.py
import time
import uuid
from collections import OrderedDict

from flask import Flask, redirect, render_template_string, request, session, url_for

import certidoes
from config import get_settings
from form_controller import FormController
from logging_setup import init_logging

init_logging()

app = Flask(__name__)
app.secret_key = get_settings().secret_key

class ControllerStore:
    """In-memory controllers keyed by session id.

    Least recently used entries are closed and dropped once ``max_size`` is
    reached, and any entry idle for ``idle_seconds`` is dropped on the next access.
    """

    def __init__(self, max_size, idle_seconds, clock=time.monotonic):
        self.max_size = max_size
        self.idle_seconds = idle_seconds
        self.clock = clock
        self._entries = OrderedDict()  # sid -> (last_seen, controller)

    def get_or_create(self, sid, factory):
        now = self.clock()
        self._expire(now)
        if sid in self._entries:
            _, ctl = self._entries.pop(sid)
        else:
            while len(self._entries) >= self.max_size:
                self._drop(next(iter(self._entries)))
            ctl = factory()
        self._entries[sid] = (now, ctl)
        return ctl

    def values(self):
        return [ctl for _, ctl in self._entries.values()]

    def __contains__(self, sid):
        return sid in self._entries

    def __len__(self):
        return len(self._entries)

    def _expire(self, now):
        for sid, (last_seen, _) in list(self._entries.items()):
            if now - last_seen < self.idle_seconds:
                break  # entries are ordered by last access
            self._drop(sid)

    def _drop(self, sid):
        _, ctl = self._entries.pop(sid)
        ctl.close()


_controllers = ControllerStore(
    max_size=get_settings().max_form_sessions,
    idle_seconds=get_settings().form_session_idle_seconds,
)

# selections first so an explicit cnpj/tipoDocumento edit in the same post wins
FORM_FIELDS = ["empresa", "docTypeSelect", "cnpj", "tipoDocumento",
               "orgao", "dataEmissao", "fimVigencia", "statusNovoVenc"]


def current_controller():
    sid = session.get("sid")
    if sid is None:
        sid = session["sid"] = uuid.uuid4().hex
    return _controllers.get_or_create(sid, FormController)


PAGE = """
<!doctype html>
<title>Gestão de Certidões</title>
<h1>Gestão de Certidões</h1>
<p>Controle unificado de documentos e vencimentos.</p>

{% if status.message %}
  <div class="banner {{ status.state.value }}">
    {{ status.message }}
    {% if status.detail %}<pre>{{ status.detail }}</pre>{% endif %}
    <form method="post" action="{{ url_for('dismiss') }}"><button>×</button></form>
  </div>
{% endif %}

<form method="post" action="{{ url_for('set_fields') }}">
  <label>Empresa
    <select name="empresa">
      <option value="">Selecione a empresa...</option>
      {% for c in companies %}
        <option value="{{ c }}" {% if c == draft.empresa %}selected{% endif %}>{{ c }}</option>
      {% endfor %}
    </select>
  </label>
  <label>CNPJ <input name="cnpj" value="{{ draft.cnpj }}" placeholder="00.000.000/0000-00"></label>
  <label>Tipo de documento
    <select name="docTypeSelect">
      <option value="">Selecione o tipo...</option>
      {% for t in doc_types %}
        <option value="{{ t.value }}" {% if t.value == selected_doc_type %}selected{% endif %}>{{ t.value }}</option>
      {% endfor %}
    </select>
  </label>
  {% if selected_doc_type == "Outro" %}
    <label>Especifique <input name="tipoDocumento" value="{{ draft.document_type.text }}" required></label>
  {% endif %}
  <label>Órgão <input name="orgao" value="{{ draft.orgao }}"></label>
  <label>Data de emissão <input type="date" name="dataEmissao" value="{{ draft.data_emissao }}"></label>
  <label>Fim da vigência <input type="date" name="fimVigencia" value="{{ draft.fim_vigencia }}"></label>
  <label>Status / novo vencimento <input name="statusNovoVenc" value="{{ draft.status_novo_venc }}"></label>
  <button>Atualizar</button>
</form>

<form method="post" action="{{ url_for('add_email') }}">
  <label>Emails para notificação ({{ draft.emails|length }}/5)
    <input name="currentEmail" value="{{ current_email }}">
  </label>
  <button>Adicionar</button>
  {% if email_error %}<span class="error">{{ email_error }}</span>{% endif %}
</form>
<ul>
  {% for e in draft.emails %}
    <li>{{ e }}
      <form method="post" action="{{ url_for('remove_email') }}">
        <input type="hidden" name="email" value="{{ e }}"><button>×</button>
      </form>
    </li>
  {% endfor %}
</ul>

<form method="post" action="{{ url_for('submit') }}">
  <button {% if submitting %}disabled{% endif %}>Salvar certidão</button>
</form>
"""


@app.route("/")
def index():
    ctl = current_controller()
    return render_template_string(
        PAGE,
        draft=ctl.draft,
        status=ctl.status,
        current_email=ctl.current_email,
        email_error=ctl.email_error,
        selected_doc_type=ctl.selected_doc_type,
        submitting=ctl.is_submitting,
        companies=certidoes.COMPANIES,
        doc_types=list(certidoes.CertidaoType),
    )


@app.route("/field", methods=["POST"])
def set_fields():
    ctl = current_controller()
    form = request.form
    before = dict(ctl.draft.to_payload(), docTypeSelect=ctl.selected_doc_type)
    # only fields the user actually changed
    for name in FORM_FIELDS:
        if name in form and form[name] != before[name]:
            ctl.set_field(name, form[name])
    return redirect(url_for("index"))


@app.route("/emails", methods=["POST"])
def add_email():
    ctl = current_controller()
    ctl.set_field("currentEmail", request.form.get("currentEmail", "").strip())
    ctl.add_email()
    return redirect(url_for("index"))


@app.route("/emails/remove", methods=["POST"])
def remove_email():
    current_controller().remove_email(request.form.get("email", ""))
    return redirect(url_for("index"))


@app.route("/submit", methods=["POST"])
def submit():
    current_controller().submit()
    return redirect(url_for("index"))


@app.route("/dismiss", methods=["POST"])
def dismiss():
    current_controller().dismiss()
    return redirect(url_for("index"))


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=get_settings().form_port)
