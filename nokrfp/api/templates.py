"""
Nok RFP Wizard — HTML Templates
Kept out of dashboard.py so the routes stay readable.
"""

BASE_CSS = """
:root{--bg:#0b1020;--sf:#131a2e;--sf2:#1a2238;--bd:rgba(255,255,255,.1);--tx:#e4e6ed;--tx2:#94a3b8;
--ac:#3b82f6;--ac2:#2563eb;--gn:#34d399;--rd:#f87171;--or:#fdba74;--r:14px}
*{margin:0;padding:0;box-sizing:border-box}
body{font-family:'DM Sans',sans-serif;background:var(--bg);color:var(--tx);min-height:100vh}
a{color:var(--ac);text-decoration:none}
.ctr{max-width:1040px;margin:0 auto;padding:48px 24px}
.hero{border:1px solid var(--bd);border-radius:24px;padding:32px;margin-bottom:32px;background:linear-gradient(135deg,rgba(255,255,255,.05),transparent)}
.hero-top{display:flex;align-items:center;gap:12px;flex-wrap:wrap}
.brand{font-size:20px;font-weight:700;color:#fff}
.tag{border-radius:999px;background:rgba(255,255,255,.1);padding:4px 12px;font-size:11px;font-weight:600;text-transform:uppercase;letter-spacing:.2em;color:var(--or)}
.hero h1{margin-top:16px;font-size:34px;font-weight:600;color:#fff}
.hero p{margin-top:12px;max-width:720px;font-size:15px;color:var(--tx2)}
.meta{display:flex;justify-content:space-between;font-size:12px;text-transform:uppercase;color:var(--tx2);margin-bottom:12px}
.bar{height:8px;border-radius:999px;background:var(--sf2);overflow:hidden;margin-bottom:32px}
.bar-fill{height:100%;border-radius:999px;background:linear-gradient(90deg,var(--ac),var(--ac2));transition:width .2s}
.grid{display:grid;gap:24px;grid-template-columns:1.1fr .9fr}
@media(max-width:900px){.grid{grid-template-columns:1fr}}
.card{background:var(--sf);border:1px solid var(--bd);border-radius:var(--r);padding:24px}
.card-t{font-size:14px;font-weight:600;color:#fff}
.card-s{font-size:13px;color:var(--tx2);margin-bottom:24px}
.fld{display:flex;flex-direction:column;gap:8px;margin-bottom:16px}
.fld[hidden]{display:none}
.lbl{font-size:14px;font-weight:600;color:#fff}
.hlp{margin-left:6px;font-size:12px;color:var(--tx2);cursor:help}
.input{width:100%;border-radius:10px;border:1px solid var(--bd);background:rgba(15,23,42,.6);color:var(--tx);padding:10px 12px;font:inherit;font-size:14px}
textarea.input{min-height:96px}
.chips{display:flex;gap:12px;flex-wrap:wrap}
.chip{border-radius:999px;border:1px solid var(--bd);background:rgba(15,23,42,.4);padding:8px 16px;font-size:14px;cursor:pointer}
.chip input{display:none}
.chip.on{border-color:var(--ac);background:rgba(59,130,246,.2);color:#fff}
.checks{display:grid;gap:8px;grid-template-columns:1fr 1fr}
.check{display:flex;gap:10px;align-items:center;border:1px solid var(--bd);border-radius:12px;background:rgba(15,23,42,.4);padding:12px;font-size:14px;cursor:pointer}
.range{display:flex;gap:12px;align-items:center}.range input{flex:1;accent-color:var(--ac)}
.range span{width:96px;text-align:right;font-size:14px}
.defs{font-size:12px;color:var(--tx2);background:var(--sf2);border:1px solid var(--bd);border-radius:10px;padding:10px 12px}
.defs summary{cursor:pointer}.defs div{margin-top:6px}.defs b{color:#fff}
.actions{display:flex;justify-content:space-between;flex-wrap:wrap;gap:12px;margin-top:32px}
.actions div{display:flex;gap:12px;align-items:center}
.btn{border-radius:10px;padding:10px 18px;font:inherit;font-size:14px;font-weight:600;cursor:pointer;border:1px solid var(--bd);background:transparent;color:var(--tx)}
.btn.primary{background:var(--ac2);border-color:var(--ac2);color:#fff}
.btn:disabled,.btn.disabled{opacity:.5;cursor:not-allowed;pointer-events:none}
.btn.sm{font-size:12px;padding:8px 12px}
.steps{list-style:none;display:flex;flex-direction:column;gap:12px;margin:16px 0}
.steps button{width:100%;text-align:left;border:1px solid var(--bd);border-radius:12px;background:rgba(15,23,42,.4);color:var(--tx);padding:12px;font:inherit;cursor:pointer}
.steps button.on{border-color:var(--ac);background:rgba(59,130,246,.1);color:#fff}
.steps .row{display:flex;justify-content:space-between;font-weight:500;font-size:14px}
.steps .saved{font-size:12px;color:#93c5fd}
.steps p{font-size:12px;color:var(--tx2)}
.tip{border:1px solid rgba(59,130,246,.3);background:rgba(59,130,246,.15);border-radius:12px;padding:16px;font-size:12px}
.tip b{display:block;font-size:14px;color:#fff;margin-bottom:8px}
.deliv{border:1px solid var(--bd);border-radius:12px;background:rgba(15,23,42,.4);padding:16px;font-size:14px}
.deliv h3{font-size:16px;color:#fff;margin-bottom:12px}
.deliv li{list-style:none;margin-bottom:10px;display:flex;gap:8px}.deliv li span:first-child{color:#60a5fa}
.alert{padding:12px 16px;border-radius:10px;margin-bottom:16px;font-size:14px}
.al-e{background:rgba(248,113,113,.12);border:1px solid rgba(248,113,113,.4);color:var(--rd)}
.al-i{background:rgba(59,130,246,.12);border:1px solid rgba(59,130,246,.4);color:#bfdbfe}
"""

# Rendered through render() in dashboard.py; receives wiz, steps, step,
# fields, answers, visibility, can_next, ready, brand.
PAGE_WIZARD = """
{% macro field(key, f, answers, visible, brand) %}
<div class="fld" id="f-{{ key }}" {% if not visible %}hidden{% endif %}>
 <p class="lbl">{{ f.label }}{% if f.helper %}<span class="hlp" title="{{ f.helper }}">&#9432;</span>{% endif %}</p>
 {% if f.kind in ('text', 'email', 'number') %}
  <input class="input" type="{{ 'email' if f.kind == 'email' else 'text' }}" name="{{ key }}"
   {% if f.kind == 'number' %}inputmode="numeric"{% endif %}
   value="{{ answers[key] }}" placeholder="{{ f.placeholder or '' }}" data-field="{{ key }}">
 {% elif f.kind == 'textarea' %}
  <textarea class="input" name="{{ key }}" placeholder="{{ f.placeholder or '' }}" data-field="{{ key }}">{{ answers[key] }}</textarea>
 {% elif f.kind == 'select' %}
  <select class="input" name="{{ key }}" data-field="{{ key }}">
   {% if f.placeholder %}<option value="">{{ f.placeholder }}</option>{% endif %}
   {% for o in f.options %}<option value="{{ o }}" {% if answers[key] == o %}selected{% endif %}>{{ (f.option_labels or {}).get(o, o) }}</option>{% endfor %}
  </select>
 {% elif f.kind == 'radio' %}
  <div class="chips">
   {% for o in f.options %}<label class="chip{% if answers[key] == o %} on{% endif %}"><input type="radio" name="{{ key }}" value="{{ o }}" data-field="{{ key }}" {% if answers[key] == o %}checked{% endif %}>{{ o }}</label>{% endfor %}
  </div>
 {% elif f.kind == 'checkbox' %}
  <input type="hidden" name="{{ key }}__present" value="1">
  <div class="checks">
   {% for o in f.options %}<label class="check"><input type="checkbox" name="{{ key }}" value="{{ o }}" data-channel="{{ o }}" {% if o in answers[key] %}checked{% endif %}>{{ o }}</label>{% endfor %}
  </div>
 {% elif f.kind == 'range' %}
  <div class="range">
   <input type="range" min="0" max="100" name="{{ key }}" value="{{ answers[key] }}" data-field="{{ key }}"
    oninput="document.getElementById('dtc-out').textContent=this.value+'% DTC'">
   <span id="dtc-out">{{ answers[key] }}% DTC</span>
  </div>
 {% endif %}
 {% if f.definitions %}
  <details class="defs"><summary>DIF / ZVR / RTV definitions</summary>
   {% for code, text in brand.program_definitions.items() %}<div><b>{{ code }}:</b> {{ text }}</div>{% endfor %}
  </details>
 {% endif %}
</div>
{% endmacro %}

<div class="meta"><span>Step {{ wiz.step_index + 1 }} of {{ steps|length }}</span><span>{{ step.title }}</span></div>
<div class="bar"><div class="bar-fill" style="width:{{ wiz.progress }}%"></div></div>

<div class="grid">
<section class="card">
 <p class="card-t">{{ step.title }}</p>
 <p class="card-s">{{ step.blurb }}</p>

 <form method="post" action="/step/save" id="stepForm">
  <button type="submit" name="action" value="save" style="display:none" aria-hidden="true"></button>
  {% for key in step.fields %}
   {{ field(key, fields[key], answers, visibility.get(key, True), brand) }}
  {% endfor %}

  {% if step.id == 'lead' %}
  <div class="deliv">
   <h3>{{ brand.pdf.cover_heading }}</h3>
   <ul>{% for title, detail in brand.deliverables %}<li><span>&#10003;</span><span>{{ title }}: {{ detail }}</span></li>{% endfor %}</ul>
  </div>
  {% endif %}

  <div class="actions">
   <div>
    <button class="btn" name="action" value="back" {% if wiz.step_index == 0 %}disabled{% endif %}>Back</button>
    {% if step.id != 'lead' %}
    <button class="btn" name="action" value="save">Save</button>
    <button class="btn primary" id="nextBtn" name="action" value="next" {% if not can_next %}disabled{% endif %}>Next</button>
    {% endif %}
   </div>
   <div>
    {% if step.id == 'lead' %}
    <a id="dlBtn" href="/download" class="btn primary{% if not ready %} disabled{% endif %}">Download PDF</a>
    {% endif %}
    <button class="btn sm" formaction="/reset" formnovalidate>Start Over</button>
   </div>
  </div>
 </form>
</section>

<aside class="card">
 <div class="meta"><span>Step overview</span><span class="tag">{{ brand.badge }}</span></div>
 <ul class="steps">
  {% for s in steps %}
  <li><form method="post" action="/step/{{ loop.index0 }}">
   <button class="{% if loop.index0 == wiz.step_index %}on{% endif %}">
    <div class="row"><span>{{ s.title }}</span>{% if loop.index0 < wiz.step_index %}<span class="saved">Saved</span>{% endif %}</div>
    <p>{{ s.blurb }}</p>
   </button>
  </form></li>
  {% endfor %}
 </ul>
 <div class="tip"><b>Pro Tip</b>{{ step.tip }}</div>
</aside>
</div>

<script>
const CONDITIONAL = {{ conditional|tojson }};
function applyState(d){
 if(!d || !d.ok) return;
 const next=document.getElementById('nextBtn');
 if(next) next.disabled=!d.can_advance;
 const dl=document.getElementById('dlBtn');
 if(dl) dl.classList.toggle('disabled', !d.export_ready);
 CONDITIONAL.forEach(function(k){
  const el=document.getElementById('f-'+k);
  if(el) el.hidden=!d.visibility[k];
 });
}
// posts go out one at a time, in the order the edits were made
let pending=Promise.resolve();
function post(url, body){
 pending=pending.then(()=>fetch(url,{method:'POST',headers:{'Content-Type':'application/json'},body:JSON.stringify(body)})
  .then(r=>r.json()).then(applyState)).catch(()=>{});
 return pending;
}
document.querySelectorAll('[data-field]').forEach(function(el){
 const ev=(el.tagName==='SELECT'||el.type==='radio'||el.type==='range')?'change':'input';
 el.addEventListener(ev,function(){
  if(el.type==='radio'){
   el.closest('.chips').querySelectorAll('.chip').forEach(c=>c.classList.remove('on'));
   el.closest('.chip').classList.add('on');
  }
  post('/api/rfp/field',{key:el.dataset.field,value:el.value}).then(function(){
   if(el.dataset.field==='returns_per_year'){
    const digits=el.value.replace(/\\D/g,'');
    el.value=digits?Number(digits).toLocaleString('en-US'):'';
   }
  });
 });
});
document.querySelectorAll('[data-channel]').forEach(function(el){
 el.addEventListener('change',function(){post('/api/rfp/channel',{option:el.dataset.channel})});
});
const dl=document.getElementById('dlBtn');
if(dl){
 dl.addEventListener('click',function(e){
  e.preventDefault();
  if(dl.classList.contains('disabled')) return;
  dl.classList.add('disabled');dl.textContent='Preparing PDF...';
  pending.then(()=>fetch('/download')).then(function(r){
   const ct=r.headers.get('Content-Type')||'';
   if(!r.ok||ct.indexOf('application/pdf')<0) throw new Error('not a pdf');
   const cd=r.headers.get('Content-Disposition')||'';
   const m=cd.match(/filename="?([^";]+)"?/);
   return r.blob().then(b=>({blob:b,name:m?m[1]:'RFP.pdf'}));
  }).then(function(f){
   const a=document.createElement('a');
   a.href=URL.createObjectURL(f.blob);a.download=f.name;
   document.body.appendChild(a);a.click();a.remove();
  }).catch(function(){
   alert('Could not prepare the PDF. Please try again.');
  }).finally(function(){
   dl.classList.remove('disabled');dl.textContent='Download PDF';
  });
 });
}
</script>
"""
