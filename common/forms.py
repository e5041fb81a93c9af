import json

from django import forms

from .entities import DraftType, ScriptLine


class LoginForm(forms.Form):
    username = forms.CharField(max_length=150, widget=forms.TextInput(attrs={'class': 'form-control'}))
    password = forms.CharField(widget=forms.PasswordInput(attrs={'class': 'form-control'}))


class RegisterForm(forms.Form):
    username = forms.CharField(max_length=150, widget=forms.TextInput(attrs={'class': 'form-control'}))
    email = forms.EmailField(widget=forms.EmailInput(attrs={'class': 'form-control'}))
    password = forms.CharField(widget=forms.PasswordInput(attrs={'class': 'form-control'}))


class ClientForm(forms.Form):
    """
    Formulário usado para criar ou editar um cliente.
    Só o nome e o email são obrigatórios.
    """
    name = forms.CharField(max_length=200, widget=forms.TextInput(attrs={'class': 'form-control'}))
    email = forms.EmailField(widget=forms.EmailInput(attrs={'class': 'form-control'}))
    company = forms.CharField(max_length=200, required=False, widget=forms.TextInput(attrs={'class': 'form-control'}))
    phone = forms.CharField(max_length=30, required=False,
                            widget=forms.TextInput(attrs={'class': 'form-control', 'placeholder': 'Digite apenas números'}))
    cpf = forms.CharField(max_length=20, required=False,
                          widget=forms.TextInput(attrs={'class': 'form-control', 'placeholder': 'Digite apenas números'}))
    observations = forms.CharField(required=False, widget=forms.Textarea(attrs={'class': 'form-control', 'rows': 3}))


HEX_COLOR = r'^#[0-9a-fA-F]{6}$'


class SettingsForm(forms.Form):
    """ Atualização parcial: só os campos enviados no pedido são aplicados. """
    user_name = forms.CharField(max_length=150, required=False)
    custom_logo = forms.CharField(required=False)
    asaas_url = forms.URLField(required=False)
    primary_color = forms.RegexField(HEX_COLOR, required=False)
    accent_color = forms.RegexField(HEX_COLOR, required=False)
    splash_screen_background_color = forms.RegexField(HEX_COLOR, required=False)
    privacy_mode_enabled = forms.BooleanField(required=False)

    def changes(self):
        return {
            name: value for name, value in self.cleaned_data.items()
            if name in self.data
        }


class DraftForm(forms.Form):
    title = forms.CharField(max_length=200, widget=forms.TextInput(attrs={'class': 'form-control'}))
    type = forms.ChoiceField(choices=DraftType.choices, initial=DraftType.SCRIPT)


class DraftEditForm(forms.Form):
    """ Edição de um rascunho; as linhas do roteiro chegam como JSON. """
    title = forms.CharField(max_length=200)
    content = forms.CharField(required=False, widget=forms.Textarea)
    script_lines = forms.CharField(required=False)

    def clean_script_lines(self):
        raw = self.cleaned_data.get('script_lines')
        if not raw:
            return None
        try:
            lines = json.loads(raw)
        except json.JSONDecodeError:
            raise forms.ValidationError("As linhas do roteiro não são um JSON válido.")
        if not isinstance(lines, list) or not all(isinstance(line, dict) for line in lines):
            raise forms.ValidationError("As linhas do roteiro devem ser uma lista.")
        return [ScriptLine.from_dict(line) for line in lines]


class ImportForm(forms.Form):
    arquivo = forms.FileField()
